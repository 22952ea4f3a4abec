"""
Shared data structures for the orchestration module.

This module defines the runtime state and the constants used across
the components that drive a build plan run.
"""

import threading
from dataclasses import dataclass, field
from typing import List, Optional

from ..models.plan import BuildPlan
from ..models.runtime import CommandRun, JobStepRun


@dataclass
class RuntimeState:
    """
    Runtime state shared across orchestration components.

    ``cancel_requested`` is only ever set by the heartbeat monitor; the
    pipeline and the executor only read it.
    """
    plan: BuildPlan
    jobstep: JobStepRun
    commands: List[CommandRun] = field(default_factory=list)
    cancel_requested: threading.Event = field(default_factory=threading.Event)

    # First unrecoverable error; stops the pipeline.
    error: Optional[Exception] = None


class TimeoutConstants:
    """
    Centralized timeout configuration.
    """
    # Thread timeouts
    HEARTBEAT_JOIN_TIMEOUT = 10.0

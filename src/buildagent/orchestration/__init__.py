"""
Orchestration package for running build plans.

This package contains the components that drive one job-step run:

- BuildPlanRunner: Main entry point, runs a plan command by command
- LogTransport: Buffered, ordered console log forwarding
- ArtifactCollector: Resolves artifact patterns and uploads matches
- HeartbeatMonitor: Background liveness and cancellation polling
- RuntimeState: State shared across the components of one run
"""

from .artifact_collector import ArtifactCollector, find_matches
from .heartbeat_monitor import HeartbeatMonitor
from .log_transport import LogTransport
from .plan_runner import BuildPlanRunner
from .shared_state import RuntimeState, TimeoutConstants

__all__ = [
    "ArtifactCollector",
    "BuildPlanRunner",
    "HeartbeatMonitor",
    "LogTransport",
    "RuntimeState",
    "TimeoutConstants",
    "find_matches",
]

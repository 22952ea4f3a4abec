"""
Runtime data models.

This module contains the data structures that track the state of a run while
it executes: job-step and command lifecycles, captured console chunks, and
artifacts awaiting upload.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ..validation import CommandError

LOG_SOURCE_CONSOLE = "console"

# Return code reported to the server for any unsuccessful command.
REPORTED_FAILURE_RETURN_CODE = 255

# Reserved executor codes. Real exit statuses are 0-255 and processes killed
# by a signal report negative codes, so neither value can collide with them.
RETURN_CODE_SPAWN_FAILED = -1
RETURN_CODE_CANCELLED = 256


class Status(Enum):
    """Lifecycle status shared by job-steps and commands."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Result(Enum):
    """Outcome of a job-step run."""
    UNKNOWN = "unknown"
    PASSED = "passed"
    FAILED = "failed"


_NEXT_STATUS = {
    Status.PENDING: Status.IN_PROGRESS,
    Status.IN_PROGRESS: Status.FINISHED,
}


def _advance(current: Status, target: Status, what: str) -> Status:
    if _NEXT_STATUS.get(current) is not target:
        raise RuntimeError(
            f"Invalid status transition for {what}: {current.value} -> {target.value}"
        )
    return target


@dataclass
class ExecutionResult:
    """What the executor returns for one command."""

    return_code: int
    error: Optional[CommandError] = None

    @property
    def succeeded(self) -> bool:
        return self.return_code == 0 and self.error is None

    @property
    def cancelled(self) -> bool:
        return self.return_code == RETURN_CODE_CANCELLED

    @property
    def reported_return_code(self) -> int:
        """The return code sent to the server."""
        return 0 if self.succeeded else REPORTED_FAILURE_RETURN_CODE


@dataclass
class CommandRun:
    """Execution state of one command spec."""

    command_id: str
    status: Status = Status.PENDING
    return_code: Optional[int] = None
    cancelled: bool = False

    def start(self) -> None:
        self.status = _advance(self.status, Status.IN_PROGRESS, f"command {self.command_id}")

    def finish(self, result: ExecutionResult) -> None:
        self.status = _advance(self.status, Status.FINISHED, f"command {self.command_id}")
        self.return_code = result.return_code
        self.cancelled = result.cancelled


@dataclass
class JobStepRun:
    """
    Overall state of a job-step run.

    Status only ever moves forward, pending -> in_progress -> finished; any
    other transition raises ``RuntimeError``.
    """

    jobstep_id: str
    node: str
    status: Status = Status.PENDING
    result: Result = Result.UNKNOWN

    def start(self) -> None:
        self.status = _advance(self.status, Status.IN_PROGRESS, f"job-step {self.jobstep_id}")

    def finish(self, result: Result) -> None:
        self.status = _advance(self.status, Status.FINISHED, f"job-step {self.jobstep_id}")
        self.result = result


@dataclass
class LogChunk:
    """A slice of captured console output, kept as the raw bytes."""

    data: bytes
    source: str = LOG_SOURCE_CONSOLE


@dataclass
class Artifact:
    """A file produced by a command, uploaded under its base name."""

    name: str
    path: Path

    @classmethod
    def from_path(cls, path: Path) -> "Artifact":
        return cls(name=path.name, path=path)


@dataclass
class RunResult:
    """
    Final outcome of a build plan run.

    ``error`` holds the first unrecoverable error (a reporting failure, for
    example); a failing command is not an error, it just makes the result
    ``FAILED``.
    """

    result: Result
    commands: List[CommandRun] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def passed(self) -> bool:
        return self.result is Result.PASSED

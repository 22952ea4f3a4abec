"""
Request and response schemas for the coordinating server's API.

Each reporting endpoint has its own request type that knows how to render
itself as form fields, and the job-step representation returned by the
heartbeat and fetch endpoints is parsed into ``JobStepState``.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .runtime import LOG_SOURCE_CONSOLE, Result, Status

ARTIFACT_FILE_FIELD = "file"

# Server-side states that mean this worker should stop.
STOP_STATUSES = frozenset({"finished"})
STOP_RESULTS = frozenset({"aborted"})


@dataclass(frozen=True)
class JobStepStatusUpdate:
    """Body of POST /jobsteps/{jobstep_id}/."""

    status: Status
    node: str
    result: Optional[Result] = None

    def to_form(self) -> Dict[str, str]:
        form = {"status": self.status.value}
        if self.result is not None:
            form["result"] = self.result.value
        form["node"] = self.node
        return form


@dataclass(frozen=True)
class CommandStatusUpdate:
    """Body of POST /commands/{command_id}/."""

    status: Status
    return_code: Optional[int] = None

    def to_form(self) -> Dict[str, str]:
        form = {"status": self.status.value}
        if self.return_code is not None:
            form["return_code"] = str(self.return_code)
        return form


@dataclass(frozen=True)
class LogAppend:
    """
    Body of POST /jobsteps/{jobstep_id}/logappend/.

    ``text`` is sent as raw bytes so console output reaches the server
    unchanged, whatever its encoding.
    """

    text: bytes
    source: str = LOG_SOURCE_CONSOLE

    def to_form(self) -> Dict[str, Any]:
        return {"text": self.text, "source": self.source}


@dataclass(frozen=True)
class ArtifactUpload:
    """Multipart body of POST /jobsteps/{jobstep_id}/artifacts/."""

    name: str
    path: Path

    def to_form(self) -> Dict[str, str]:
        return {"name": self.name}


def _nested_id(data: Dict[str, Any], key: str, default: str = "unknown") -> str:
    value = data.get(key)
    if isinstance(value, dict):
        return str(value.get("id", default))
    if isinstance(value, str):
        return value
    return default


@dataclass
class JobStepState:
    """
    The server's authoritative view of a job-step.

    Only the fields the agent acts on are typed; the full decoded payload is
    kept in ``raw`` so the plan loader can read commands and sources from it.
    """

    id: str
    status: str = "unknown"
    result: str = "unknown"
    command_ids: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobStepState":
        if not isinstance(data, dict):
            raise ValueError(f"Job-step payload must be an object, got {type(data).__name__}")
        commands = data.get("commands") or []
        return cls(
            id=str(data.get("id", "")),
            status=_nested_id(data, "status"),
            result=_nested_id(data, "result"),
            command_ids=[str(c.get("id", "")) for c in commands if isinstance(c, dict)],
            raw=data,
        )

    @property
    def should_stop(self) -> bool:
        """True when the server has cancelled or already finalized the job-step."""
        return self.status in STOP_STATUSES or self.result in STOP_RESULTS

"""
Build plan data models.

A build plan is the immutable definition of one job-step run as issued by the
coordinating server. It is created by the plan loader before a run and is
read-only for the lifetime of the engine.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class RepositoryConfig:
    """The repository being built."""

    # Source-control backend identifier, e.g. "git".
    backend_id: str = ""
    url: str = ""


@dataclass(frozen=True)
class SourceConfig:
    """The revision, and optional patch, being built."""

    revision_sha: str = ""
    patch_id: Optional[str] = None


@dataclass(frozen=True)
class CommandSpec:
    """
    One step of a build plan.

    ``cwd`` may be empty (run in the workspace) or relative (resolved under the
    workspace). ``artifacts`` holds glob patterns resolved against the
    workspace after the command succeeds.
    """

    id: str
    script: str
    env: Dict[str, str] = field(default_factory=dict)
    cwd: str = ""
    artifacts: Tuple[str, ...] = ()

    def resolve_cwd(self, workspace: Path) -> Path:
        """Return the directory the command runs in."""
        if not self.cwd:
            return workspace
        return workspace / self.cwd


@dataclass(frozen=True)
class BuildPlan:
    """The complete, ordered definition of a job-step run."""

    jobstep_id: str
    workspace: Path
    commands: Tuple[CommandSpec, ...] = ()
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    source: SourceConfig = field(default_factory=SourceConfig)

"""
Data models for the build agent.

Configuration Models:
- Agent settings grouped by config section

Plan Models:
- The immutable build plan and its command specs

Runtime Models:
- Job-step and command lifecycle state
- Console log chunks and artifacts
- Executor and run results

API Models:
- Typed request bodies per reporting endpoint
- The job-step state returned by the server
"""

from .api import (
    ArtifactUpload,
    CommandStatusUpdate,
    JobStepState,
    JobStepStatusUpdate,
    LogAppend,
)
from .config import AgentConfig, HeartbeatConfig, LogConfig, ProcessConfig, ServerConfig
from .plan import BuildPlan, CommandSpec, RepositoryConfig, SourceConfig
from .runtime import (
    LOG_SOURCE_CONSOLE,
    REPORTED_FAILURE_RETURN_CODE,
    RETURN_CODE_CANCELLED,
    RETURN_CODE_SPAWN_FAILED,
    Artifact,
    CommandRun,
    ExecutionResult,
    JobStepRun,
    LogChunk,
    Result,
    RunResult,
    Status,
)

__all__ = [
    # API
    "ArtifactUpload",
    "CommandStatusUpdate",
    "JobStepState",
    "JobStepStatusUpdate",
    "LogAppend",
    # Configuration
    "AgentConfig",
    "HeartbeatConfig",
    "LogConfig",
    "ProcessConfig",
    "ServerConfig",
    # Plan
    "BuildPlan",
    "CommandSpec",
    "RepositoryConfig",
    "SourceConfig",
    # Runtime
    "LOG_SOURCE_CONSOLE",
    "REPORTED_FAILURE_RETURN_CODE",
    "RETURN_CODE_CANCELLED",
    "RETURN_CODE_SPAWN_FAILED",
    "Artifact",
    "CommandRun",
    "ExecutionResult",
    "JobStepRun",
    "LogChunk",
    "Result",
    "RunResult",
    "Status",
]

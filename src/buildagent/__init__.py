"""
buildagent: Build plan runner for remote build workers.

This package runs a job-step build plan issued by a coordinating build
server, one shell command at a time, and streams status, console output and
artifacts back to the server while watching for server-side cancellation.

The package is organized into specialized modules:
- config: Agent configuration and build plan loading
- models: Data structures and API schemas
- validation: Input validation and error handling
- client: HTTP reporting client for the build server
- executor: Command process execution and termination
- orchestration: Run coordination, log forwarding, artifacts and heartbeats
- cli: Command-line interface

Usage:
    From command line:
        buildagent --server URL --jobstep-id ID [options]

    Programmatically:
        from buildagent import BuildPlanRunner, ReportingClient, load_build_plan_file
        plan = load_build_plan_file(Path("plan.json"), Path.cwd())
        with ReportingClient(server_url, plan.jobstep_id) as client:
            result = BuildPlanRunner(client).run(plan)
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path
from .config import load_build_plan_file, parse_build_plan
from .client import ReportingClient
from .executor import CommandExecutor
from .orchestration import BuildPlanRunner
from .cli import main_cli

# Model classes for external use
from .models import (
    AgentConfig,
    BuildPlan,
    CommandSpec,
    ExecutionResult,
    Result,
    RunResult,
    Status,
)

# Validation utilities
from .validation import (
    CommandError,
    PlanError,
    ReportingError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "load_build_plan_file",
    "parse_build_plan",
    "ReportingClient",
    "CommandExecutor",
    "BuildPlanRunner",
    "main_cli",
    # Models
    "AgentConfig",
    "BuildPlan",
    "CommandSpec",
    "ExecutionResult",
    "Result",
    "RunResult",
    "Status",
    # Errors
    "CommandError",
    "PlanError",
    "ReportingError",
    "ValidationError",
]

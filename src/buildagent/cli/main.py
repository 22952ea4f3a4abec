"""
Command-line interface for the build agent.

This module provides the ``buildagent`` entry point: it loads the agent
configuration, obtains the build plan (from a file or from the server),
runs it, and exits with a status reflecting the outcome.
"""

import argparse
import logging
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from ..client import ReportingClient
from ..config import (
    get_config,
    get_config_info,
    load_build_plan_file,
    parse_build_plan,
    set_config_path,
)
from ..config.validators import LOG_LEVELS
from ..models.config import AgentConfig
from ..models.plan import BuildPlan
from ..orchestration import BuildPlanRunner
from ..validation import (
    ReportingError,
    ValidationError,
    handle_cli_error,
)

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_SETUP_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildagent",
        description="Run a job-step build plan and report its progress to the build server.",
    )
    parser.add_argument(
        "--server",
        required=True,
        help="Base URL of the coordinating server's API (e.g. https://changes.example.com/api/0).",
    )
    parser.add_argument(
        "--jobstep-id",
        required=True,
        help="Identifier of the job-step to run.",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=Path.cwd(),
        help="Workspace root directory. Defaults to the current directory.",
    )
    parser.add_argument(
        "--plan-file",
        type=Path,
        help="Read the build plan from this JSON file instead of fetching it from the server.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Agent configuration file. Defaults to conf/config.toml when present.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the configured log level.",
    )
    return parser


def load_agent_config(config_path: Optional[Path]) -> AgentConfig:
    """
    Load the agent configuration.

    An explicit ``config_path`` must exist; without one the default file is
    used if present, otherwise built-in defaults.
    """
    if config_path is not None:
        set_config_path(config_path)
        return get_config()
    if Path(get_config_info()["config_path"]).exists():
        return get_config()
    logger.info("No configuration file found, using defaults")
    return AgentConfig.defaults()


def obtain_build_plan(client: ReportingClient, plan_file: Optional[Path], workspace: Path) -> BuildPlan:
    """Load the plan from ``plan_file``, or fetch it from the server."""
    if plan_file is not None:
        logger.info(f"Loading build plan from {plan_file}")
        return load_build_plan_file(plan_file, workspace)
    logger.info(f"Fetching build plan for job-step {client.jobstep_id}")
    state = client.fetch_jobstep()
    return parse_build_plan(state.raw, workspace)


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for the build agent.

    Exits with 0 when the run passed, 1 when it failed (including a run
    aborted by a reporting error), and 2 when the configuration or the
    build plan could not be loaded.
    """
    args = build_parser().parse_args(argv)

    try:
        agent_config = load_agent_config(args.config)
    except (FileNotFoundError, tomllib.TOMLDecodeError, ValidationError) as e:
        handle_cli_error(e, "configuration loading", exit_code=EXIT_SETUP_ERROR, logger=logger)

    logging.getLogger().setLevel(args.log_level or agent_config.log_level)

    workspace = args.workspace.resolve()
    if not workspace.is_dir():
        handle_cli_error(
            NotADirectoryError(f"Workspace {workspace} is not a directory"),
            "workspace validation",
            exit_code=EXIT_SETUP_ERROR,
            logger=logger,
        )

    with ReportingClient(args.server, args.jobstep_id, agent_config.server) as client:
        try:
            plan = obtain_build_plan(client, args.plan_file, workspace)
        except (ValidationError, ReportingError) as e:
            handle_cli_error(e, "build plan loading", exit_code=EXIT_SETUP_ERROR, logger=logger)

        runner = BuildPlanRunner(client, agent_config)
        result = runner.run(plan)

    if result.error is not None:
        logger.error(f"Run aborted: {result.error}")
    if result.passed:
        logger.info("Build plan passed")
        sys.exit(EXIT_PASSED)
    logger.warning("Build plan failed")
    sys.exit(EXIT_FAILED)


if __name__ == "__main__":
    main_cli()

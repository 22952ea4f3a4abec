"""
Build plan loading.

The coordinating server describes a job-step as JSON:

    {
        "id": "549db9a70d4d4d258e0a6d475ccd8a15",
        "commands": [
            {"id": "cmd_1", "script": "#!/bin/bash\\necho -n $VAR",
             "env": {"VAR": "hello world"}, "cwd": "/tmp",
             "artifacts": ["junit.xml"]}
        ],
        "repository": {"url": "...", "backend": {"id": "git"}},
        "source": {"revision": {"sha": "aaaaaa"}, "patch": {"id": "patch_1"}}
    }

This module validates that document and turns it into a ``BuildPlan``. Any
problem is reported as a ``PlanError`` before a single command runs.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.plan import BuildPlan, CommandSpec, RepositoryConfig, SourceConfig
from ..validation import (
    ErrorSeverity,
    PlanError,
    ValidationError,
    handle_plan_error,
    validate_non_empty_string,
    validate_string_list,
    validate_string_mapping,
)
from .loader import load_json_file

logger = logging.getLogger(__name__)


def _as_plan_error(error: ValidationError) -> PlanError:
    return PlanError(str(error), field_name=error.field_name, value=error.value)


def _nested(data: Dict[str, Any], *keys: str) -> Optional[Any]:
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def parse_command_spec(data: Any, index: int) -> CommandSpec:
    """Validate one entry of the ``commands`` list."""
    prefix = f"commands[{index}]"
    if not isinstance(data, dict):
        raise PlanError(f"{prefix} must be an object", field_name=prefix, value=data)

    command_id = validate_non_empty_string(data.get("id"), field_name=f"{prefix}.id")

    script = data.get("script")
    if not isinstance(script, str):
        raise PlanError(
            f"{prefix}.script must be a string",
            field_name=f"{prefix}.script",
            value=script
        )

    cwd = data.get("cwd") or ""
    if not isinstance(cwd, str):
        raise PlanError(f"{prefix}.cwd must be a string", field_name=f"{prefix}.cwd", value=cwd)

    return CommandSpec(
        id=command_id,
        script=script,
        env=validate_string_mapping(data.get("env"), field_name=f"{prefix}.env"),
        cwd=cwd,
        artifacts=tuple(validate_string_list(data.get("artifacts"), field_name=f"{prefix}.artifacts")),
    )


def parse_build_plan(data: Any, workspace: Path) -> BuildPlan:
    """
    Convert a job-step document into a BuildPlan.

    Args:
        data: Decoded job-step JSON
        workspace: Root directory commands run in and artifacts resolve against

    Returns:
        The immutable BuildPlan

    Raises:
        PlanError: If the document is malformed or inconsistent
    """
    try:
        if not isinstance(data, dict):
            raise PlanError("Build plan must be an object", field_name="plan", value=data)

        jobstep_id = validate_non_empty_string(data.get("id"), field_name="id")

        raw_commands = data.get("commands") or []
        if not isinstance(raw_commands, list):
            raise PlanError("commands must be a list", field_name="commands", value=raw_commands)

        commands: List[CommandSpec] = []
        seen_ids = set()
        for index, raw_command in enumerate(raw_commands):
            command = parse_command_spec(raw_command, index)
            if command.id in seen_ids:
                raise PlanError(
                    f"Duplicate command id: {command.id}",
                    field_name=f"commands[{index}].id",
                    value=command.id
                )
            seen_ids.add(command.id)
            commands.append(command)

        plan = BuildPlan(
            jobstep_id=jobstep_id,
            workspace=Path(workspace),
            commands=tuple(commands),
            repository=RepositoryConfig(
                backend_id=str(_nested(data, "repository", "backend", "id") or ""),
                url=str(_nested(data, "repository", "url") or ""),
            ),
            source=SourceConfig(
                revision_sha=str(_nested(data, "source", "revision", "sha") or ""),
                patch_id=_nested(data, "source", "patch", "id"),
            ),
        )
    except PlanError as e:
        handle_plan_error(e, "validation", severity=ErrorSeverity.ERROR, reraise=True, logger=logger)
        raise
    except ValidationError as e:
        plan_error = _as_plan_error(e)
        handle_plan_error(plan_error, "validation", severity=ErrorSeverity.ERROR, reraise=False, logger=logger)
        raise plan_error from e

    logger.info(f"Loaded build plan for job-step {plan.jobstep_id} with {len(plan.commands)} command(s)")
    return plan


def load_build_plan_file(plan_path: Path, workspace: Path) -> BuildPlan:
    """
    Load a build plan from a JSON file on disk.

    Raises:
        PlanError: If the file is missing, not valid JSON, or malformed
    """
    try:
        data = load_json_file(plan_path, "build plan")
    except (OSError, ValueError) as e:
        raise PlanError(f"Cannot read build plan {plan_path}: {e}", field_name="plan_file", value=str(plan_path)) from e
    return parse_build_plan(data, workspace)

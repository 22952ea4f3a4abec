"""
Configuration validation utilities.

This module turns the raw ``[agent]`` table of config.toml into a validated
``AgentConfig``. Missing sections and keys fall back to their defaults.
"""

import logging
from typing import Any, Dict

from ..models.config import AgentConfig, HeartbeatConfig, LogConfig, ProcessConfig, ServerConfig
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _section(agent_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = agent_data.get(name, {})
    if not isinstance(section, dict):
        raise ValidationError(
            f"agent.{name} must be a table",
            field_name=f"agent.{name}",
            value=section
        )
    return section


def validate_server_config(server_data: Dict[str, Any]) -> ServerConfig:
    defaults = ServerConfig()
    return ServerConfig(
        timeout_seconds=validate_positive_float(
            server_data.get("timeout_seconds", defaults.timeout_seconds),
            min_value=0.1,
            max_value=600.0,
            field_name="agent.server.timeout_seconds",
        ),
        max_attempts=validate_positive_integer(
            server_data.get("max_attempts", defaults.max_attempts),
            min_value=1,
            max_value=20,
            field_name="agent.server.max_attempts",
        ),
        retry_delay_seconds=validate_positive_float(
            server_data.get("retry_delay_seconds", defaults.retry_delay_seconds),
            min_value=0.0,
            max_value=60.0,
            field_name="agent.server.retry_delay_seconds",
        ),
    )


def validate_heartbeat_config(heartbeat_data: Dict[str, Any]) -> HeartbeatConfig:
    defaults = HeartbeatConfig()
    return HeartbeatConfig(
        interval_seconds=validate_positive_float(
            heartbeat_data.get("interval_seconds", defaults.interval_seconds),
            min_value=0.01,
            max_value=600.0,
            field_name="agent.heartbeat.interval_seconds",
        ),
    )


def validate_log_config(log_data: Dict[str, Any]) -> LogConfig:
    defaults = LogConfig()
    return LogConfig(
        flush_size_bytes=validate_positive_integer(
            log_data.get("flush_size_bytes", defaults.flush_size_bytes),
            min_value=1,
            max_value=16 * 1024 * 1024,
            field_name="agent.logs.flush_size_bytes",
        ),
        flush_interval_seconds=validate_positive_float(
            log_data.get("flush_interval_seconds", defaults.flush_interval_seconds),
            min_value=0.01,
            max_value=60.0,
            field_name="agent.logs.flush_interval_seconds",
        ),
    )


def validate_process_config(process_data: Dict[str, Any]) -> ProcessConfig:
    defaults = ProcessConfig()
    return ProcessConfig(
        shell=validate_non_empty_string(
            process_data.get("shell", defaults.shell),
            field_name="agent.process.shell",
        ),
        termination_grace_seconds=validate_positive_float(
            process_data.get("termination_grace_seconds", defaults.termination_grace_seconds),
            min_value=0.1,
            max_value=300.0,
            field_name="agent.process.termination_grace_seconds",
        ),
        output_poll_interval=validate_positive_float(
            process_data.get("output_poll_interval", defaults.output_poll_interval),
            min_value=0.001,
            max_value=5.0,
            field_name="agent.process.output_poll_interval",
        ),
    )


def validate_agent_config(agent_data: Dict[str, Any]) -> AgentConfig:
    """
    Validate and create an AgentConfig from raw configuration data.

    Args:
        agent_data: Raw ``[agent]`` table from TOML

    Returns:
        Validated AgentConfig instance

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(agent_data, dict):
        raise ValidationError("agent must be a table", field_name="agent", value=agent_data)

    general = _section(agent_data, "general")
    config = AgentConfig(
        server=validate_server_config(_section(agent_data, "server")),
        heartbeat=validate_heartbeat_config(_section(agent_data, "heartbeat")),
        logs=validate_log_config(_section(agent_data, "logs")),
        process=validate_process_config(_section(agent_data, "process")),
        log_level=validate_enum_choice(
            general.get("log_level", "INFO"),
            choices=LOG_LEVELS,
            field_name="agent.general.log_level",
            case_sensitive=False,
        ),
    )
    logger.debug(f"Validated agent configuration: {config}")
    return config

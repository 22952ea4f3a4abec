"""
Configuration data models.

This module contains the configuration data structures for the agent,
loaded from `config.toml` and grouped by the section they come from.
"""

from dataclasses import dataclass, field


@dataclass
class ServerConfig:
    """
    Settings for talking to the coordinating server, from `[agent.server]`.
    """

    # Per-request timeout in seconds.
    timeout_seconds: float = 30.0
    # Attempts per reporting call before it is considered failed.
    max_attempts: int = 3
    # Pause between attempts.
    retry_delay_seconds: float = 1.0


@dataclass
class HeartbeatConfig:
    """Settings for the heartbeat monitor, from `[agent.heartbeat]`."""

    interval_seconds: float = 5.0


@dataclass
class LogConfig:
    """
    Settings for console log forwarding, from `[agent.logs]`.
    """

    # Queued console output is flushed once it reaches this many bytes.
    flush_size_bytes: int = 4096
    # Queued console output is flushed once it is this old, even if small.
    flush_interval_seconds: float = 1.0


@dataclass
class ProcessConfig:
    """
    Settings for command execution, from `[agent.process]`.
    """

    # Shell used for scripts without a '#!' line.
    shell: str = "/bin/sh"
    # Time between SIGTERM and SIGKILL when a command is cancelled.
    termination_grace_seconds: float = 5.0
    # How often the executor wakes up to check output, exit and cancellation.
    output_poll_interval: float = 0.1


@dataclass
class AgentConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    heartbeat: HeartbeatConfig = field(default_factory=HeartbeatConfig)
    logs: LogConfig = field(default_factory=LogConfig)
    process: ProcessConfig = field(default_factory=ProcessConfig)
    # Level for the local diagnostic logger.
    log_level: str = "INFO"

    @classmethod
    def defaults(cls) -> "AgentConfig":
        """Return a configuration with every setting at its default."""
        return cls()

"""
Exception hierarchy and error management.

This module provides the error types raised across the agent and the
``handle_error`` helper used to log them consistently before deciding
whether to re-raise.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the main exception type used for configuration and plan checks.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class PlanError(ValidationError):
    """Raised when a build plan is malformed or inconsistent."""


class InvalidPatternError(ValidationError):
    """Raised for a syntactically invalid artifact glob pattern."""


class CommandError(Exception):
    """Base class for errors describing how a command ended."""


class CommandSpawnError(CommandError):
    """The command process could not be started."""


class CommandFailedError(CommandError):
    """The command exited with a non-zero status."""

    def __init__(self, return_code: int):
        super().__init__(f"exit status {return_code}")
        self.return_code = return_code


class CommandCancelledError(CommandError):
    """The command was terminated because the run was cancelled."""

    def __init__(self, message: str = "command cancelled by server"):
        super().__init__(message)


class ReportingError(Exception):
    """Base error for calls to the coordinating server."""


class ReportingHTTPError(ReportingError):
    """The server answered with an error status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500


class ReportingTransportError(ReportingError):
    """The call could not be delivered, retries included."""


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_plan_error(error: Exception, context: str, **kwargs) -> None:
    """Handle build-plan errors."""
    handle_error(error, f"build plan {context}", **kwargs)


def handle_reporting_error(error: Exception, call: str, **kwargs) -> None:
    """Handle errors from a server reporting call."""
    handle_error(error, f"reporting call '{call}'", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Handle CLI-related errors and exit."""
    exit_code = kwargs.pop('exit_code', 1)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)

"""
Validation and error handling for the buildagent package.

This module provides input validation, the agent's exception hierarchy and
error handling with consistent error reporting across the application.
"""

from .exceptions import (
    CommandCancelledError,
    CommandError,
    CommandFailedError,
    CommandSpawnError,
    ErrorSeverity,
    InvalidPatternError,
    PlanError,
    ReportingError,
    ReportingHTTPError,
    ReportingTransportError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_plan_error,
    handle_reporting_error,
)

from .strategies import simple_retry

from .validators import (
    validate_enum_choice,
    validate_glob_pattern,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
    validate_string_list,
    validate_string_mapping,
)

__all__ = [
    # Exceptions
    "CommandCancelledError",
    "CommandError",
    "CommandFailedError",
    "CommandSpawnError",
    "ErrorSeverity",
    "InvalidPatternError",
    "PlanError",
    "ReportingError",
    "ReportingHTTPError",
    "ReportingTransportError",
    "ValidationError",
    # Handlers
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_plan_error",
    "handle_reporting_error",
    # Strategies
    "simple_retry",
    # Validators
    "validate_enum_choice",
    "validate_glob_pattern",
    "validate_non_empty_string",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_string_list",
    "validate_string_mapping",
]

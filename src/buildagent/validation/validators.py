"""
Validation functions.

This module provides the value checks shared by the configuration and
build-plan loaders.
"""

from typing import Any, Dict, List, Optional

from .exceptions import InvalidPatternError, ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a positive float.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """Validate that a value is a string with at least one non-blank character."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value


def validate_enum_choice(
    value: Any,
    choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        choices: List of allowed choices
        field_name: Name of the field being validated
        case_sensitive: Whether the comparison should be case-sensitive

    Returns:
        Validated choice, in the spelling used by ``choices``

    Raises:
        ValidationError: If value is not in choices
    """
    str_value = str(value)

    if case_sensitive:
        if str_value not in choices:
            raise ValidationError(
                f"{field_name} must be one of {choices}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in choices]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return choices[lower_choices.index(lower_value)]


def validate_string_mapping(value: Any, field_name: str = "mapping") -> Dict[str, str]:
    """
    Validate a mapping of string keys to string values.

    ``None`` is accepted and treated as an empty mapping. Non-string scalar
    values (numbers, booleans) are converted with ``str``.
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(
            f"{field_name} must be a mapping, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )
    result: Dict[str, str] = {}
    for key, item in value.items():
        if not isinstance(key, str) or not key:
            raise ValidationError(
                f"{field_name} keys must be non-empty strings, got {key!r}",
                field_name=field_name,
                value=value
            )
        if isinstance(item, (dict, list)) or item is None:
            raise ValidationError(
                f"{field_name}[{key}] must be a scalar value",
                field_name=field_name,
                value=value
            )
        result[key] = str(item)
    return result


def validate_string_list(value: Any, field_name: str = "list") -> List[str]:
    """Validate a list of non-empty strings; ``None`` means an empty list."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(
            f"{field_name} must be a list, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )
    for i, item in enumerate(value):
        validate_non_empty_string(item, field_name=f"{field_name}[{i}]")
    return list(value)


def validate_glob_pattern(pattern: str, field_name: str = "pattern") -> str:
    """
    Validate the syntax of a shell-style glob pattern.

    Every ``[`` must open a character class closed by a later ``]``; a ``]``
    directly after ``[`` or ``[!`` is part of the class. Other characters, including
    ``\\``, are literal.

    Raises:
        InvalidPatternError: If the pattern is empty or malformed
    """
    if not isinstance(pattern, str) or not pattern:
        raise InvalidPatternError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=pattern
        )

    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise InvalidPatternError(
                    f"{field_name} has an unterminated character class: {pattern!r}",
                    field_name=field_name,
                    value=pattern
                )
            i = j + 1
            continue
        i += 1
    return pattern

"""
Validation functions for configuration values and CLI arguments.

Each validator returns the normalized value or raises ValidationError with
the offending field name attached.
"""

import re
from typing import Any, List, Optional, Union

from .exceptions import CPUListError, ValidationError

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_SCALE = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}
_UNIT_NAME = re.compile(r"^[A-Za-z0-9:_.@\\-]+$")


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within bounds.

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


def validate_duration(
    value: Union[str, int, float],
    min_seconds: float = 0.1,
    max_seconds: float = 3600.0,
    field_name: str = "interval"
) -> float:
    """
    Validate a polling interval and return it in seconds.

    Accepts a bare number of seconds or a duration string made of one or
    more ``<number><unit>`` parts with units ``ms``, ``s``, ``m`` and ``h``.

    Examples:
        >>> validate_duration("5s")
        5.0
        >>> validate_duration("1m30s")
        90.0
        >>> validate_duration(2)
        2.0
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError(
                f"{field_name} cannot be empty", field_name=field_name, value=value
            )
        pos = 0
        seconds = 0.0
        while pos < len(text):
            match = _DURATION_PART.match(text, pos)
            if not match:
                raise ValidationError(
                    f"{field_name} is not a valid duration (e.g. '500ms', '5s', '1m'): {value}",
                    field_name=field_name,
                    value=value
                )
            seconds += float(match.group(1)) * _DURATION_SCALE[match.group(2)]
            pos = match.end()
        value = seconds

    return validate_positive_float(
        value, min_value=min_seconds, max_value=max_seconds, field_name=field_name
    )


def validate_bool(value: Any, field_name: str = "value") -> bool:
    """Validate that a value is a real boolean."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean", field_name=field_name, value=value
        )
    return value


def validate_string_list(value: Any, field_name: str = "value") -> List[str]:
    """
    Validate a list of strings.

    Entries are stripped and empty entries are dropped; order is preserved.
    """
    if not isinstance(value, list):
        raise ValidationError(
            f"{field_name} must be a list of strings", field_name=field_name, value=value
        )
    result = []
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ValidationError(
                f"{field_name}[{i}] must be a string, got {item!r}",
                field_name=field_name,
                value=value
            )
        item = item.strip()
        if item:
            result.append(item)
    return result


def validate_cpu_list_text(value: Any, field_name: str = "cpus") -> str:
    """
    Validate a CPU list expression and return its canonical form.

    An empty string is accepted and means "not set".
    """
    from ..system.cpulist import canonicalize_cpu_list

    if not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string", field_name=field_name, value=value
        )
    try:
        canonical, _ = canonicalize_cpu_list(value)
    except CPUListError as e:
        raise ValidationError(
            f"{field_name} is not a valid CPU list: {e}",
            field_name=field_name,
            value=value
        ) from e
    return canonical


def validate_unit_name(value: Any, suffix: str = "", field_name: str = "unit") -> str:
    """
    Validate a systemd unit name, optionally requiring a suffix such as ``.slice``.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string", field_name=field_name, value=value
        )
    name = value.strip()
    if not _UNIT_NAME.match(name):
        raise ValidationError(
            f"{field_name} contains characters not allowed in unit names: {name}",
            field_name=field_name,
            value=value
        )
    if suffix and not name.endswith(suffix):
        raise ValidationError(
            f"{field_name} must end with {suffix}: {name}",
            field_name=field_name,
            value=value
        )
    return name


def validate_log_level(value: Any, field_name: str = "log_level") -> str:
    """Validate a logging level name and return it upper-cased."""
    choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    str_value = str(value).upper()
    if str_value not in choices:
        raise ValidationError(
            f"{field_name} must be one of {choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return str_value

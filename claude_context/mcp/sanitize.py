"""Shared sanitization utilities for the MCP layer.

These functions provide input validation and sanitization for all MCP
tools so every handler receives arguments of the types it expects.
"""

import math
import re
from typing import Any, List, Optional


def sanitize_string(
    value: Any, field_name: str, max_length: int = 1000, required: bool = True
) -> str:
    """Sanitize and validate string inputs.

    Args:
        value: The value to sanitize.
        field_name: Name of the field for error messages.
        max_length: Maximum allowed string length.
        required: If True, empty strings are rejected.

    Returns:
        Sanitized string.

    Raises:
        ValueError: If validation fails.
    """
    if value is None and not required:
        return ""

    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string, got {type(value).__name__}")

    if required and not value.strip():
        raise ValueError(f"{field_name} cannot be empty")

    if len(value) > max_length:
        raise ValueError(f"{field_name} too long (max {max_length} characters, got {len(value)})")

    # Remove null bytes and control characters except newlines and tabs
    sanitized = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)

    return sanitized


def validate_enum(
    value: Any,
    field_name: str,
    valid_values: List[str],
    default: Optional[str] = None,
    required: bool = False,
) -> str:
    """Validate enum values.

    Args:
        value: The value to validate
        field_name: Name of the field for error messages
        valid_values: List of valid enum values
        default: Default value if value is None
        required: If True, value must be provided (no default)

    Returns:
        Validated enum value

    Raises:
        ValueError: If validation fails
    """
    if value is None:
        if required or default is None:
            raise ValueError(f"{field_name} is required")
        return default

    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")

    if value not in valid_values:
        raise ValueError(f"{field_name} must be one of {valid_values}, got '{value}'")

    return value


def validate_number(
    value: Any,
    field_name: str,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
    default: Optional[float] = None,
) -> float:
    """Validate numeric values, rejecting booleans, NaN and Infinity.

    Raises:
        ValueError: If validation fails
    """
    if value is None:
        if default is not None:
            return default
        raise ValueError(f"{field_name} is required")

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number, got {type(value).__name__}")

    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        raise ValueError(f"{field_name} must be a finite number, got {value}")

    if min_val is not None and value < min_val:
        raise ValueError(f"{field_name} must be >= {min_val}, got {value}")

    if max_val is not None and value > max_val:
        raise ValueError(f"{field_name} must be <= {max_val}, got {value}")

    return float(value)


def validate_optional_int(
    value: Any,
    field_name: str,
    min_val: Optional[int] = 0,
    max_val: Optional[int] = None,
) -> Optional[int]:
    """Like :func:`validate_number` but integral, with ``None`` passed through."""
    if value is None:
        return None
    number = validate_number(value, field_name, min_val, max_val)
    if not float(number).is_integer():
        raise ValueError(f"{field_name} must be an integer, got {value}")
    return int(number)


def validate_bool(value: Any, field_name: str, default: bool = False) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{field_name} must be a boolean, got {type(value).__name__}")
    return value


def sanitize_int_array(
    value: Any, field_name: str, max_items: int = 10000, required: bool = False
) -> Optional[List[int]]:
    """Validate an array of non-negative integer indices.

    Returns ``None`` when the value is absent and not required.

    Raises:
        ValueError: If validation fails
    """
    if value is None:
        if required:
            raise ValueError(f"{field_name} is required")
        return None

    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be an array, got {type(value).__name__}")

    if len(value) > max_items:
        raise ValueError(f"{field_name} too many items (max {max_items}, got {len(value)})")

    if any(item is None for item in value):
        raise ValueError(f"{field_name} must not contain null items")

    return [
        validate_optional_int(item, f"{field_name}[{i}]", min_val=0) for i, item in enumerate(value)
    ]

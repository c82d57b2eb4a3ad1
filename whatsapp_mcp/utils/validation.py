"""
Validation utilities for MCP tool arguments.

Provides standardized validation functions that return (value, error) tuples.
"""

import os
from datetime import datetime
from typing import Optional

# Set WHATSAPP_MAX_LIMIT to override (e.g., for full history exports)
MAX_MESSAGE_LIMIT = int(os.getenv("WHATSAPP_MAX_LIMIT", "500"))
MIN_LIMIT = 1  # Minimum limit value


def validate_positive_int(
    value,
    name: str,
    min_val: int = MIN_LIMIT,
    max_val: int = MAX_MESSAGE_LIMIT
) -> tuple[int | None, str | None]:
    """
    Validate that a value is a positive integer within bounds.

    Args:
        value: Value to validate
        name: Parameter name for error messages
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        Tuple of (validated_value, error_message). If valid, error_message is None.
    """
    if value is None:
        return None, None

    if isinstance(value, bool):
        return None, f"Invalid {name}: must be an integer, got bool"

    try:
        int_value = int(value)
    except (TypeError, ValueError):
        return None, f"Invalid {name}: must be an integer, got {type(value).__name__}"

    if int_value < min_val:
        return None, f"Invalid {name}: must be at least {min_val}, got {int_value}"

    if int_value > max_val:
        return None, f"Invalid {name}: must be at most {max_val}, got {int_value}"

    return int_value, None


def validate_non_empty_string(value, name: str) -> tuple[str | None, str | None]:
    """
    Validate that a value is a non-empty string.

    Identifiers are opaque, so only surrounding whitespace is stripped.

    Returns:
        Tuple of (validated_value, error_message). If valid, error_message is None.
    """
    if value is None:
        return None, f"Missing required parameter: {name}"

    if not isinstance(value, str):
        return None, f"Invalid {name}: must be a string, got {type(value).__name__}"

    stripped = value.strip()
    if not stripped:
        return None, f"Invalid {name}: cannot be empty"

    return stripped, None


def validate_optional_string(value, name: str) -> tuple[str | None, str | None]:
    """Like validate_non_empty_string, but a missing value is allowed."""
    if value is None:
        return None, None
    return validate_non_empty_string(value, name)


def validate_optional_bool(value, name: str) -> tuple[bool | None, str | None]:
    if value is None or isinstance(value, bool):
        return value, None
    return None, f"Invalid {name}: must be a boolean, got {type(value).__name__}"


def validate_string_list(value, name: str) -> tuple[list[str] | None, str | None]:
    """Validate a required, non-empty list of non-empty strings."""
    if value is None:
        return None, f"Missing required parameter: {name}"

    if not isinstance(value, list):
        return None, f"Invalid {name}: must be a list, got {type(value).__name__}"

    if not value:
        return None, f"Invalid {name}: cannot be empty"

    items = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            return None, f"Invalid {name}: every entry must be a non-empty string"
        items.append(item.strip())
    return items, None


def validate_page(
    arguments: dict,
    default_limit: Optional[int] = None
) -> tuple[tuple[int | None, int], str | None]:
    """
    Extract limit/page for client-side pagination.

    A missing limit means "everything"; pages start at 1.

    Returns:
        Tuple of ((limit, page), error_message).
    """
    limit, error = validate_positive_int(arguments.get("limit", default_limit), "limit", max_val=10**9)
    if error:
        return (None, 1), error

    page, error = validate_positive_int(arguments.get("page", 1), "page", max_val=10**9)
    if error:
        return (None, 1), error

    return (limit, page or 1), None


def paginate(items: list, limit: int | None, page: int) -> list:
    """Slice one page out of an already fully fetched list."""
    if limit is None:
        return list(items)
    start = limit * (page - 1)
    return list(items[start:start + limit])


def validate_iso_datetime(value, name: str) -> tuple[datetime | None, str | None]:
    """Parse an optional ISO 8601 date/time string."""
    if value is None:
        return None, None

    if not isinstance(value, str):
        return None, f"Invalid {name}: must be an ISO 8601 string, got {type(value).__name__}"

    try:
        # fromisoformat only understands a trailing "Z" on 3.11+
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")), None
    except ValueError:
        return None, f"Invalid {name}: not an ISO 8601 date, got '{value}'"

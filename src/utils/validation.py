"""
Input validation utilities for the command line tools.

Checks operator-supplied location ids, dates and file paths before they
reach the pipeline or the database.
"""

import re
from datetime import date


class InputValidationError(ValueError):
    """Raised when command line input validation fails."""
    pass


MAX_BACKFILL_DAYS = 366


def validate_location_id(location_id: str, field_name: str = "location_id") -> str:
    """
    Validate a location id given on the command line.

    Location ids are short strings of letters and digits; the classifier
    decides what they mean, so only obviously bad input is rejected here.

    Args:
        location_id: The location id to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated location id (stripped of whitespace)

    Raises:
        InputValidationError: If validation fails

    Examples:
        >>> validate_location_id(" 2352 ")
        '2352'
        >>> validate_location_id("23 52")  # doctest: +SKIP
        InputValidationError: location_id contains invalid characters
    """
    if not location_id or not isinstance(location_id, str):
        raise InputValidationError(f"{field_name} must be a non-empty string")

    location_id = location_id.strip()

    if not location_id:
        raise InputValidationError(f"{field_name} cannot be empty or whitespace-only")

    if not re.match(r'^[A-Za-z0-9]+$', location_id):
        raise InputValidationError(
            f"{field_name} contains invalid characters. Only letters and digits are allowed."
        )

    if len(location_id) > 50:
        raise InputValidationError(f"{field_name} exceeds maximum length of 50 characters")

    return location_id


def parse_date(value: str, field_name: str = "date") -> date:
    """
    Parse an ISO date (YYYY-MM-DD).

    Raises:
        InputValidationError: If the value is not a valid ISO date
    """
    if not value or not isinstance(value, str):
        raise InputValidationError(f"{field_name} must be a non-empty string")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InputValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD), got {value!r}") from e


def validate_date_range(
    start_date: date,
    end_date: date,
    max_days: int = MAX_BACKFILL_DAYS,
) -> tuple[date, date]:
    """
    Validate a half-open date range [start_date, end_date).

    Args:
        start_date: First date (inclusive)
        end_date: Last date (exclusive)
        max_days: Largest accepted range

    Returns:
        The validated (start_date, end_date)

    Raises:
        InputValidationError: If the range is empty, reversed or too long
    """
    if end_date <= start_date:
        raise InputValidationError(
            f"end date {end_date.isoformat()} must be after start date {start_date.isoformat()}"
        )

    days = (end_date - start_date).days
    if days > max_days:
        raise InputValidationError(f"date range of {days} days exceeds maximum of {max_days} days")

    return start_date, end_date


def validate_file_path(file_path: str, field_name: str = "file_path") -> str:
    """
    Validate a file path for security.

    Prevents path traversal and null bytes.

    Raises:
        InputValidationError: If validation fails
    """
    if not file_path or not isinstance(file_path, str):
        raise InputValidationError(f"{field_name} must be a non-empty string")

    file_path = file_path.strip()

    if not file_path:
        raise InputValidationError(f"{field_name} cannot be empty or whitespace-only")

    if ".." in file_path:
        raise InputValidationError(f"{field_name} contains path traversal characters (..)")

    if "\x00" in file_path:
        raise InputValidationError(f"{field_name} contains null bytes")

    if len(file_path) > 4096:
        raise InputValidationError(f"{field_name} exceeds maximum length of 4096 characters")

    return file_path

"""Datetime parsing helpers shared by log queries and metrics windows."""

from datetime import datetime, timezone
from typing import Optional, Type

from app.exceptions import InterfaceMonitorError


def to_utc_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(
    value: Optional[str],
    field: str,
    error_cls: Type[InterfaceMonitorError],
) -> Optional[datetime]:
    """
    Parse an ISO 8601 date or datetime query parameter.

    Args:
        value: Raw parameter value, empty or None when absent
        field: Parameter name used in the error message
        error_cls: Exception raised for malformed input

    Returns:
        Naive UTC datetime, or None when the parameter is absent
    """
    if value is None or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise error_cls(f"Invalid {field}: '{value}' is not an ISO 8601 date")
    return to_utc_naive(parsed)

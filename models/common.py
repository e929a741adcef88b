"""Timestamp helpers shared by the record models."""

from datetime import date, datetime, time
from typing import Optional, Union

DateLike = Union[date, datetime]


def as_timestamp(value: Optional[DateLike]) -> Optional[datetime]:
    """Normalise a date or datetime to a datetime.

    A bare date becomes midnight of that day. None passes through so that
    validation can report the missing field.
    """
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def day_of(value: DateLike) -> date:
    """Return the calendar day of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp read from the database."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a timestamp for storage."""
    return value.isoformat() if value else None

"""Date-range selection applied to record sets before aggregation or export."""

from datetime import timedelta
from typing import Iterable, List, TypeVar

from models.common import DateLike, day_of

T = TypeVar("T")


def in_date_range(value: DateLike, start: DateLike, end: DateLike) -> bool:
    """Check whether value falls on a day within [start, end].

    Uses open bounds one day outside the range, so both ends are included
    and time of day is ignored.
    """
    day = day_of(value)
    return day_of(start) - timedelta(days=1) < day < day_of(end) + timedelta(days=1)


def filter_by_date_range(records: Iterable[T], start: DateLike, end: DateLike) -> List[T]:
    """Keep the records whose date lies within [start, end], inclusive.

    Args:
        records: Records with a ``date`` attribute.
        start: First day of the range.
        end: Last day of the range.

    Returns:
        Matching records in their original order.
    """
    return [r for r in records if in_date_range(r.date, start, end)]

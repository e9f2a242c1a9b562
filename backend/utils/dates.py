"""Day-granularity date helpers shared by the custody scheduler and the API."""

from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

DateLike = Union[date, datetime, str]


def parse_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Parse a date, datetime or ISO-8601 string into a calendar date.

    Accepts "YYYY-MM-DD" as well as full timestamps such as
    "2024-01-06T15:30:00.000Z". Time of day is discarded without any timezone
    conversion, so a timestamp always lands on its own calendar day.

    Returns None for None or an empty string. Raises ValueError for anything
    else that cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).date()
    raise ValueError(f"Unsupported date value: {value!r}")


def start_of_day(value: DateLike) -> date:
    """Normalize any date-like value to its calendar day."""
    day = parse_date(value)
    if day is None:
        raise ValueError("A date is required")
    return day


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole days from start to end; negative when end is before start."""
    return (start_of_day(end) - start_of_day(start)).days


def date_range(start: DateLike, end: DateLike) -> Iterator[date]:
    """Yield every day from start to end inclusive."""
    current = start_of_day(start)
    last = start_of_day(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def is_weekend(value: DateLike) -> bool:
    # date.weekday(): Monday == 0 ... Sunday == 6
    return start_of_day(value).weekday() >= 5


def strip_timezone(value: Optional[datetime]) -> Optional[datetime]:
    """Keep the wall-clock time and drop tzinfo so stored events stay on their calendar day."""
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None)


def utc_offset_minutes(value: Optional[datetime]) -> Optional[int]:
    """Offset of an aware datetime in minutes east of UTC, None for naive values."""
    if value is None or value.tzinfo is None:
        return None
    return int(value.utcoffset().total_seconds() // 60)

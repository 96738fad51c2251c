"""Monday-aligned week windows used by the schedule grid.

All functions are pure. ``datetime`` input keeps its tzinfo and is truncated to
midnight; ``date`` input gives a ``date`` back, so results compare with their input.
"""
import enum
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple, Union

DAYS_IN_WEEK = 7

DateLike = Union[date, datetime]


class WeekDirection(str, enum.Enum):
    NEXT = "next"
    PREVIOUS = "previous"


def week_start(value: DateLike) -> DateLike:
    """Monday of the ISO week containing ``value``, at 00:00 for datetimes."""
    if isinstance(value, datetime):
        day = value.date()
        monday = day - timedelta(days=day.weekday())
        return datetime.combine(monday, time.min, tzinfo=value.tzinfo)
    return value - timedelta(days=value.weekday())


def navigate(current: datetime, direction) -> datetime:
    step = timedelta(days=DAYS_IN_WEEK)
    if WeekDirection(direction) is WeekDirection.NEXT:
        return current + step
    return current - step


def week_days(monday: datetime) -> List[datetime]:
    return [monday + timedelta(days=i) for i in range(DAYS_IN_WEEK)]


def week_bounds(monday: datetime) -> Tuple[datetime, datetime]:
    # Half-open request window [monday, next monday)
    return monday, monday + timedelta(days=DAYS_IN_WEEK)


def ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def week_label(monday: DateLike) -> str:
    """E.g. ``"3rd - 9th Jun"``, or ``"30th Jun - 6th Jul"`` across months."""
    end = monday + timedelta(days=DAYS_IN_WEEK - 1)
    same_month = (monday.year, monday.month) == (end.year, end.month)
    start_text = ordinal(monday.day) if same_month else f"{ordinal(monday.day)} {monday:%b}"
    return f"{start_text} - {ordinal(end.day)} {end:%b}"


def request_window(start: Optional[datetime], end: Optional[datetime], today: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Naive UTC ``[start, end)`` for list queries, defaulting to the current week."""
    def _naive(value: datetime) -> datetime:
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    start = _naive(start) if start is not None else week_start(today or datetime.now(timezone.utc).replace(tzinfo=None))
    end = _naive(end) if end is not None else start + timedelta(days=DAYS_IN_WEEK)
    return start, end

# utils/scheduling.py
import re
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Tuple, Union

from models.schedule import ScheduleType
from schemas.errors import FieldError
from schemas.schedule import ScheduleCreate, ScheduleUpdate
from utils.errors import ValidationFailed

# End times before this hour belong to the day after the shift's date
OVERNIGHT_CUTOFF_HOUR = 9

REPEAT_OFFSET = timedelta(days=7)

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_of_day(value: str, field: str) -> time:
    match = _TIME_OF_DAY.match((value or "").strip())
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour < 24 and minute < 60:
            return time(hour, minute)
    raise ValidationFailed.single(field, f"{field} must be a time in HH:mm format.")


def _as_date(day: Union[date, datetime]) -> date:
    return day.date() if isinstance(day, datetime) else day


def normalize_shift_times(day: Union[date, datetime], start: str, end: str) -> Tuple[datetime, datetime]:
    """Combine a calendar day with "HH:mm" start/end times into instants.

    Any end hour below OVERNIGHT_CUTOFF_HOUR rolls the end to the next day,
    whatever the start time is.
    """
    day = _as_date(day)
    errors: List[FieldError] = []
    parsed = {}
    for field, value in (("start", start), ("end", end)):
        try:
            parsed[field] = parse_time_of_day(value, field)
        except ValidationFailed as e:
            errors.extend(e.errors)
    if errors:
        raise ValidationFailed(errors)

    start_dt = datetime.combine(day, parsed["start"])
    end_day = day + timedelta(days=1) if parsed["end"].hour < OVERNIGHT_CUTOFF_HOUR else day
    end_dt = datetime.combine(end_day, parsed["end"])

    if start_dt >= end_dt:
        raise ValidationFailed.single("start", "Start time must be before end time.")
    return start_dt, end_dt


def ensure_valid_interval(start: datetime, end: datetime, allow_empty: bool = False, field: str = "startTime") -> None:
    # Shifts need start < end; schedules (day markers) accept start == end
    if start > end or (start == end and not allow_empty):
        relation = "at or before" if allow_empty else "before"
        raise ValidationFailed.single(field, f"{field} must be {relation} endTime.")


def expand_time_off(start_date: Union[date, datetime], end_date: Union[date, datetime]) -> List[datetime]:
    """Midnight of every day from ``start_date`` through ``end_date`` plus one day.

    The extra trailing day matches what the time-off form has always submitted:
    a request for the 3rd to the 4th produces entries for the 3rd, 4th and 5th.
    """
    start_day, end_day = _as_date(start_date), _as_date(end_date)
    if start_day > end_day:
        raise ValidationFailed.single("startTime", "The start date must be before or the same as the end date.")
    last = end_day + timedelta(days=1)
    count = (last - start_day).days + 1
    return [datetime.combine(start_day + timedelta(days=i), time.min) for i in range(count)]


def schedule_hours(start: datetime, end: datetime) -> float:
    return round((end - start).total_seconds() / 3600, 2)


def default_shift_times(now: datetime) -> Tuple[str, str]:
    """Initial "HH:00" start/end values for a new shift: the current hour plus four."""
    return f"{now.hour:02d}:00", f"{(now.hour + 4) % 24:02d}:00"


def repeat_week(schedules: Iterable) -> List[ScheduleCreate]:
    """Copies of ``schedules`` moved exactly one week later, without ids.

    No duplicate check is made: repeating the same week twice yields two copies.
    """
    repeated = []
    for schedule in schedules:
        data = schedule.model_dump(exclude={"id"})
        data["start_time"] = schedule.start_time + REPEAT_OFFSET
        data["end_time"] = schedule.end_time + REPEAT_OFFSET
        repeated.append(ScheduleCreate(**data))
    return repeated


def accept_all(schedules: Iterable) -> List[ScheduleUpdate]:
    return [ScheduleUpdate(**{**s.model_dump(), "type": ScheduleType.TIME_OFF_ACCEPTED}) for s in schedules]

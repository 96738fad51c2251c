# client/forms.py
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from client.agent import Agent
from client.errors import ApiError, ApiErrorKind
from schemas.errors import FieldError
from schemas.schedule import ScheduleOut, TimeOffRequest, UserScheduleRow
from schemas.shift import ShiftCreate, ShiftOut
from utils.errors import ValidationFailed
from utils.scheduling import default_shift_times, expand_time_off, normalize_shift_times

logger = logging.getLogger(__name__)


@dataclass
class FormErrors:
    """Messages attached to form fields; errors naming no known field are kept aside."""

    fields: Dict[str, str] = field(default_factory=dict)
    unmatched: List[FieldError] = field(default_factory=list)

    def attach(self, errors: Iterable[FieldError], field_map: Dict[str, str]) -> None:
        for error in errors:
            name = field_map.get(error.field)
            if name is None:
                self.unmatched.append(error)
            else:
                # First message per field wins
                self.fields.setdefault(name, error.message)

    def __bool__(self):
        return bool(self.fields or self.unmatched)


def _submit_errors(errors: FormErrors, e: ApiError, field_map: Dict[str, str]) -> None:
    if e.kind is not ApiErrorKind.VALIDATION_FAILED:
        logger.error("Form submission failed: %r", e)
        raise e
    errors.attach(e.fields, field_map)


@dataclass
class ShiftFormValues:
    user_id: Optional[int]
    group_id: Optional[int]
    date: date
    start: str
    end: str


class ShiftForm:
    """Add/edit/delete dialog for a single shift."""

    FIELD_MAP = {
        "userId": "userId",
        "groupId": "groupId",
        "date": "date",
        "start": "start",
        "startTime": "start",
        "end": "end",
        "endTime": "end",
    }

    def __init__(self, agent: Agent, site_id: int, *, shift: Optional[ShiftOut] = None,
                 user: Optional[UserScheduleRow] = None, day: Optional[datetime] = None,
                 now: Optional[datetime] = None):
        self.agent = agent
        self.site_id = site_id
        self.shift = shift
        self.user = user
        self.day = day
        self.now = now or datetime.now()
        self.errors = FormErrors()

    @property
    def editing(self) -> bool:
        return self.shift is not None

    def initial_values(self) -> ShiftFormValues:
        if self.shift is not None:
            return ShiftFormValues(
                user_id=self.user.id if self.user else self.shift.user_id,
                group_id=self.shift.group_id,
                date=self.shift.start_time.date(),
                start=f"{self.shift.start_time:%H:%M}",
                end=f"{self.shift.end_time:%H:%M}",
            )
        start, end = default_shift_times(self.now)
        return ShiftFormValues(
            user_id=self.user.id if self.user else None,
            group_id=self.user.group.id if self.user and self.user.group else None,
            date=(self.day or self.now).date(),
            start=start,
            end=end,
        )

    def build(self, values: ShiftFormValues) -> ShiftCreate:
        errors: List[FieldError] = []
        if values.user_id is None:
            errors.append(FieldError(field="userId", message="User is required."))
        if values.group_id is None:
            errors.append(FieldError(field="groupId", message="Group is required."))
        try:
            start_time, end_time = normalize_shift_times(values.date, values.start, values.end)
        except ValidationFailed as e:
            errors.extend(e.errors)
        if errors:
            raise ValidationFailed(errors)
        return ShiftCreate(
            user_id=values.user_id,
            group_id=values.group_id,
            site_id=self.site_id,
            start_time=start_time,
            end_time=end_time,
            pending=False,
        )

    def submit(self, values: Optional[ShiftFormValues] = None, **changes) -> Optional[ShiftOut]:
        """Save the shift; returns None and fills ``errors`` when validation fails."""
        values = replace(values or self.initial_values(), **changes)
        self.errors = FormErrors()
        try:
            body = self.build(values)
        except ValidationFailed as e:
            self.errors.attach(e.errors, self.FIELD_MAP)
            return None
        try:
            if self.shift is not None:
                return self.agent.update_shift(self.shift.id, body)
            return self.agent.add_shift(body)
        except ApiError as e:
            _submit_errors(self.errors, e, self.FIELD_MAP)
            return None

    def delete(self) -> None:
        if self.shift is None:
            raise ValueError("Only an existing shift can be deleted")
        self.agent.delete_shift(self.shift.id)


class TimeOffForm:
    """Time-off request dialog: a date range becomes one schedule entry per day."""

    FIELD_MAP = {
        "userId": "userId",
        "startTime": "startTime",
        "endTime": "endTime",
        "dates": "startTime",
    }

    def __init__(self, agent: Agent, user: UserScheduleRow, day: Optional[datetime] = None,
                 today: Optional[datetime] = None):
        self.agent = agent
        self.user = user
        self.day = day or today or datetime.now()
        self.errors = FormErrors()

    def change_user(self, user: UserScheduleRow) -> None:
        self.user = user

    def build(self, start_date: date, end_date: date) -> TimeOffRequest:
        dates = expand_time_off(start_date, end_date)
        if self.user.site is None or self.user.group is None:
            raise ValidationFailed.single("userId", "User has no group in this site.")
        return TimeOffRequest(
            user_id=self.user.id,
            site_id=self.user.site.id,
            group_id=self.user.group.id,
            dates=dates,
        )

    def submit(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Optional[List[ScheduleOut]]:
        start_date = start_date or self.day.date()
        end_date = end_date or start_date
        self.errors = FormErrors()
        try:
            body = self.build(start_date, end_date)
        except ValidationFailed as e:
            self.errors.attach(e.errors, self.FIELD_MAP)
            return None
        try:
            return self.agent.request_time_off(body)
        except ApiError as e:
            _submit_errors(self.errors, e, self.FIELD_MAP)
            return None

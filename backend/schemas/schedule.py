from datetime import datetime
from typing import List, Optional
from pydantic import Field, field_validator
from models.schedule import ScheduleType
from schemas.base import CamelModel, to_naive_utc
from schemas.group import GroupOut
from schemas.shift import ShiftOut
from schemas.site import SiteOut


# Shared schedule fields
class ScheduleBase(CamelModel):
    user_id: int
    site_id: int
    group_id: int
    start_time: datetime
    end_time: datetime
    status: bool = False
    type: ScheduleType = ScheduleType.PLANNED
    hours: float = 0.0

    @field_validator("start_time", "end_time")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


# Body of POST /schedules, PUT /schedules/{id} and items of POST /schedules/bulk
class ScheduleCreate(ScheduleBase):
    pass


# Item of PUT /schedules/bulk
class ScheduleUpdate(ScheduleBase):
    id: int


class ScheduleOut(ScheduleBase):
    id: int


# One schedule entry per requested day is created from this
class TimeOffRequest(CamelModel):
    user_id: int
    site_id: int
    group_id: int
    dates: List[datetime] = Field(min_length=1)
    type: ScheduleType = ScheduleType.TIME_OFF_REQUESTED
    status: bool = False

    @field_validator("dates")
    @classmethod
    def _naive_utc(cls, value: List[datetime]) -> List[datetime]:
        return [to_naive_utc(v) for v in value]


class ScheduleIds(CamelModel):
    ids: List[int] = Field(min_length=1)


# A user's row in the weekly grid
class UserScheduleRow(CamelModel):
    id: int
    email: str
    first_name: Optional[str] = None
    surname: Optional[str] = None
    site: Optional[SiteOut] = None
    group: Optional[GroupOut] = None
    schedules: List[ScheduleOut] = []
    shifts: List[ShiftOut] = []


# Pending time-off requests of one user
class NotificationOut(CamelModel):
    user_id: int
    first_name: Optional[str] = None
    surname: Optional[str] = None
    schedules: List[ScheduleOut]

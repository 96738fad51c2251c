from datetime import datetime
from pydantic import field_validator
from schemas.base import CamelModel, to_naive_utc


# Shared shift fields
class ShiftBase(CamelModel):
    user_id: int
    group_id: int
    site_id: int
    start_time: datetime
    end_time: datetime
    pending: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


# Body of POST /shifts and PUT /shifts/{id}
class ShiftCreate(ShiftBase):
    pass


class ShiftOut(ShiftBase):
    id: int

# backend/models/schedule.py
import enum
from sqlalchemy import Column, Integer, Boolean, Float, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from database import Base

# Codes carried in Schedule.type. 1 and 2 were never issued by any client and are not accepted.
class ScheduleType(enum.IntEnum):
    PLANNED = 0
    TIME_OFF_REQUESTED = 3
    TIME_OFF_ACCEPTED = 4

# A planned interval or a time-off request for a user
class Schedule(Base):
    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    status = Column(Boolean, nullable=False, default=False)
    type = Column(Integer, nullable=False, default=ScheduleType.PLANNED.value, index=True)
    hours = Column(Float, nullable=False, default=0.0)

    user = relationship("User", back_populates="schedules")
    group = relationship("Group")
    site = relationship("Site")

# backend/models/users.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Table, func
from sqlalchemy.orm import relationship
from database import Base

# Site and group membership (a user can belong to several of each)
user_sites = Table(
    "user_sites",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
    Column("site_id", Integer, ForeignKey("sites.id"), primary_key=True),
)

user_groups = Table(
    "user_groups",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id"), primary_key=True),
)

ROLE_MEMBER = "member"
ROLE_ADMIN = "admin"

# Represents a user account with authentication details, memberships and schedule data
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    # Empty until the user sets a password from the Welcome e-mail
    password_hash = Column(String, nullable=True)
    role = Column(String, nullable=False, default=ROLE_MEMBER)
    first_name = Column(String, nullable=True)
    surname = Column(String, nullable=True)

    default_site_id = Column(Integer, ForeignKey("sites.id"), nullable=True)
    default_group_id = Column(Integer, ForeignKey("groups.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sites = relationship("Site", secondary=user_sites, back_populates="users")
    groups = relationship("Group", secondary=user_groups, back_populates="users")
    shifts = relationship("Shift", back_populates="user", order_by="Shift.start_time")
    schedules = relationship("Schedule", back_populates="user", order_by="Schedule.start_time")

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == ROLE_ADMIN

from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from database import Base
from models.users import user_sites


# Represents an organizational unit (a team or venue) that owns groups and users
class Site(Base):
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    users = relationship("User", secondary=user_sites, back_populates="sites")
    groups = relationship("Group", back_populates="site", cascade="all, delete-orphan", order_by="Group.name")

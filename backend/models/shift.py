from sqlalchemy import Column, Integer, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from database import Base

# An assigned or worked interval for a user within a site and group
class Shift(Base):
    __tablename__ = "shifts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)

    # Naive UTC wall-clock instants
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    pending = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="shifts")
    group = relationship("Group")
    site = relationship("Site")

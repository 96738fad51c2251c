from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index, func
from sqlalchemy.orm import relationship
from database import Base

LOG_SUCCESS = "SUCCESS"
LOG_FAIL = "FAIL"

# Audit trail of sign-ins, invitations and every scheduling change
class Log(Base):
    __tablename__ = "logs"
    __table_args__ = (Index("ix_logs_resource_row", "resource", "resource_id"),)

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Acting user; empty for failed logins with an unknown e-mail
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), index=True)

    # "auth", "user", "site", "group", "shift" or "schedule", plus the affected row
    resource = Column(String(50), index=True)
    resource_id = Column(Integer, nullable=True)

    status = Column(String(20), index=True, default=LOG_SUCCESS)
    ip = Column(String(64), nullable=True)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)

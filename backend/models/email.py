import uuid
from sqlalchemy import Column, Integer, String, DateTime, JSON, func
from database import Base

EMAIL_STATUS_QUEUED = 0

# Outbound notification waiting to be picked up by the external mailer
class Email(Base):
    __tablename__ = "emails"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    from_address = Column(String, nullable=False)
    to_address = Column(String, nullable=False, index=True)
    template = Column(String(50), nullable=False)
    subject = Column(String, nullable=False)
    status = Column(Integer, nullable=False, default=EMAIL_STATUS_QUEUED, index=True)

    # Template variables (e.g. the set-password token)
    context = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

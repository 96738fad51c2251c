import logging
from typing import Optional
from sqlalchemy.orm import Session

from config import settings
from models.email import Email, EMAIL_STATUS_QUEUED

logger = logging.getLogger(__name__)

# Add an outbound e-mail for the external mailer; the caller commits
def queue_email(db: Session, *, to: str, template: str, subject: str, context: Optional[dict] = None) -> Email:
    email = Email(
        from_address=settings.MAIL_FROM,
        to_address=to,
        template=template,
        subject=subject,
        status=EMAIL_STATUS_QUEUED,
        context=context or {},
    )
    db.add(email)
    logger.info("Queued %s e-mail for %s", template, to)
    return email

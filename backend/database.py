# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import settings


def normalize_url(url: str) -> str:
    # Hosted Postgres still hands out postgres://, which SQLAlchemy 2 rejects
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


SQLALCHEMY_DATABASE_URL = normalize_url(settings.DATABASE_URL)

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # Request threads share the file; long-lived servers don't need pre-ping
    engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# One session per request, closed when the response is sent
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    # Tables for sites, groups, people, shifts, schedules, outgoing mail and the audit trail
    import models.users, models.site, models.group, models.shift, models.schedule, models.email, models.log  # noqa: F401
    Base.metadata.create_all(bind=engine)

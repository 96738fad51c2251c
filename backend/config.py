# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    # Lifetime of the token sent in the Welcome e-mail
    SET_PASSWORD_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 3
    DATABASE_URL: str = "sqlite:///./database_inntrac.db"

    FRONTEND_URL: str = "http://localhost:5173"
    # Base URL used by the Python client layer
    API_URL: str = "http://127.0.0.1:8000"

    MAIL_FROM: str = "no-reply@inntrac.com"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()

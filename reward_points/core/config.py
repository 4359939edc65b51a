# reward_points/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import validator
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./reward_points.db"
    DATABASE_TEST_URL: Optional[str] = None

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and "localhost" in v:
            raise ValueError("Production environment cannot use localhost database!")
        return v

    # === Redis / Celery ===
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # === Session token (JWT) ===
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    ACCESS_TOKEN_COOKIE: str = "access_token"
    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "lax"   # 'lax' | 'strict' | 'none'
    COOKIE_DOMAIN: Optional[str] = None

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === SMTP (Email) ===
    MAIL_ENABLED: bool = False
    MAIL_SERVER: Optional[str] = None
    MAIL_PORT: Optional[int] = None
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_FROM: Optional[str] = None
    MAIL_FROM_NAME: Optional[str] = "Reward Points"
    MAIL_TLS: bool = True
    MAIL_SSL: bool = False

    # Front-end base URL used for links in emails
    CLIENT_URL: str = "http://localhost:3000"

    # === File Upload ===
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    UPLOAD_PATH: str = "uploads"
    ALLOWED_EXTENSIONS: List[str] = [
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        ".txt", ".csv", ".png", ".jpg", ".jpeg", ".gif", ".zip",
    ]

    # === Directory gateway ===
    DIRECTORY_API_URL: Optional[str] = None
    DIRECTORY_API_TOKEN: Optional[str] = None
    DIRECTORY_TIMEOUT_SECONDS: float = 10.0
    DIRECTORY_SYNC_BATCH_SIZE: int = 5
    DIRECTORY_SYNC_BATCH_DELAY_SECONDS: float = 2.0

    # === System ===
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # === Business Rules ===
    FISCAL_YEAR_START_MONTH: int = 10
    LEADERBOARD_TOP_DEFAULT: int = 10

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Create a global settings instance
settings = Settings()

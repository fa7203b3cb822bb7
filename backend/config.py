# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, List
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # Session tokens
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS512"
    SESSION_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_COOKIE_MAX_AGE: int = 7 * 24 * 60 * 60

    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "http://localhost:5173"
    CMS_URL: str = "http://localhost:5174"
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:5174"]

    # Google OAuth2
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://127.0.0.1:8000/auth/callback"

    # Short-lived OAuth state; empty URL keeps it in process memory
    REDIS_URL: str = ""
    OAUTH_STATE_TTL: int = 600

    # Object storage
    STORAGE_BACKEND: str = "local"
    UPLOAD_DIR: str = "static"
    PUBLIC_BASE_URL: str = "http://127.0.0.1:8000"
    S3_BUCKET: str = ""
    S3_REGION: str = "us-east-1"

    class Config:
        env_file: ClassVar[str] = str(env_path)

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def database_url(self) -> str:
        # SQLAlchemy requires postgresql:// instead of the legacy postgres:// scheme
        url = self.DATABASE_URL
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url

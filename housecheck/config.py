# Settings loader
from __future__ import annotations
import logging
import secrets
from functools import lru_cache
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Database (use SQLite for dev; swap to Postgres URL in prod)
    DATABASE_URL: str = "sqlite:///./housecheck.db"

    # Object storage: "local" keeps images on disk, "s3" targets S3 / R2 / B2 / MinIO
    STORAGE_BACKEND: str = "local"
    LOCAL_STORAGE_DIR: str = "./storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    IMAGE_BUCKET: str = "inspection-images"

    S3_ACCESS_KEY: str = ""
    S3_SECRET_KEY: str = ""
    S3_ENDPOINT_URL: str | None = None  # keep None for AWS S3
    AWS_REGION: str = "us-east-1"

    # Auth - Generate secure secret if not provided
    # In production, set this via environment variable
    JWT_SECRET_KEY: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # App
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    # Portal (client side)
    API_URL: str = "http://localhost:8000"
    REQUEST_TIMEOUT: float = 30.0
    MAX_UPLOAD_FILES: int = 10
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    UPLOAD_PROGRESS_CLEAR_SECONDS: float = 2.0
    SESSION_FILE: str = "~/.housecheck/session.json"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()


def configure_logging(debug: bool | None = None) -> None:
    """Configure root logging once for the server and the CLI."""
    if debug is None:
        debug = settings.DEBUG
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

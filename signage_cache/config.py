"""
Signage Cache - Configuration
Application settings and environment variables
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional, Union


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Signage Cache"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./signage_cache.db"

    # Storage
    STORAGE_BASE_PATH: str = "./media_content"
    HASH_ALGORITHM: str = "sha256"

    # Cache & cleanup
    MAX_FILE_AGE_DAYS: int = 7  # Delete orphans older than 7 days
    MAX_CACHE_SIZE_BYTES: int = 1024 * 1024 * 1024  # 1 GB
    CLEANUP_INTERVAL_HOURS: int = 24  # Run once a day
    PRUNE_EVICT_ACTIVE: bool = False

    # Proof of play
    SCREEN_ID: str = "unregistered-screen"
    PLAY_LOG_SECRET: Optional[str] = None

    # CORS
    CORS_ORIGINS: Union[list[str], str] = ["http://localhost:3000", "http://localhost:5173"]

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

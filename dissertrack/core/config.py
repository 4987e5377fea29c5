from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Any
from pathlib import Path


def parse_bool(v: Any) -> bool:
    """Parse loose boolean values coming from .env files"""
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


class Settings(BaseSettings):
    """Client settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "DisserTrack"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # ==========================================
    # REST backend
    # ==========================================
    API_BASE_URL: str = "http://localhost:5000/api"
    API_TOKEN: str = ""  # Bearer token obtained at login
    REQUEST_TIMEOUT: float = 30.0  # seconds

    # ==========================================
    # Caching
    # ==========================================
    CACHE_TTL_MEETINGS: int = 1800  # 30 minutes
    CACHE_MAX_ENTRIES: int = 500

    # ==========================================
    # Shared meeting store (fallback source)
    # ==========================================
    MEETING_STORE_PATH: str = str(Path.home() / ".dissertrack" / "recent_meetings.json")

    # ==========================================
    # Views
    # ==========================================
    POLL_INTERVAL_SECONDS: float = 120.0  # 2 minutes
    HOD_PAGE_SIZE: int = 10

    # Fill blank meeting content with readable placeholders before sending.
    # The backend treats "" as "not provided" and keeps the previous value.
    FILL_BLANK_CONTENT_PLACEHOLDERS: bool = True

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @field_validator("FILL_BLANK_CONTENT_PLACEHOLDERS", "DEBUG", mode="before")
    @classmethod
    def _parse_flags(cls, v: Any) -> bool:
        return parse_bool(v)

    @field_validator("API_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# Create settings instance
settings = Settings()

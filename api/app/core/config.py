"""Application settings parsed from environment variables and defaults."""

import json
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _split_list(value: str | list[str] | None) -> list[str]:
    """Normalize list settings from JSON, CSV, or list inputs."""
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return []
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in stripped.split(",") if item.strip()]
    return []


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = "Clipvault API"
    environment: str = "development"
    api_prefix: str = "/api"

    database_url: str = "sqlite+aiosqlite:///./clipvault.db"
    test_database_url: Optional[str] = None

    log_level: str = "INFO"
    cors_origins: list[str] | str = Field(default_factory=lambda: DEFAULT_CORS_ORIGINS.copy())
    redis_url: str = "redis://redis:6379/0"
    worker_queue_names: list[str] | str = Field(default_factory=lambda: ["default", "transcription"])
    health_allowlist: list[str] | str = Field(default_factory=list)

    scraper_api_url: Optional[str] = None
    scraper_api_token: Optional[str] = None
    scrape_timeout_seconds: float = 45.0
    # Health reports a platform as degraded after this many scrape errors in a row.
    scraper_degraded_failure_streak: int = 3
    # Time budget for one import request; the scrape runs under the smaller of
    # this and scrape_timeout_seconds.
    import_request_timeout_seconds: float = 55.0
    # False keeps the historical behavior: a timed-out scrape is recorded and
    # the CDN fallback is skipped.
    scrape_timeout_falls_back_to_cdn: bool = False

    transcription_queue_name: str = "transcription"
    transcription_job_timeout_seconds: int = 900
    transcription_api_url: Optional[str] = None
    transcription_api_token: Optional[str] = None
    transcription_request_timeout_seconds: float = 600.0

    record_patch_max_attempts: int = 3

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors_origins(cls, value: str | list[str] | None) -> list[str]:
        """Normalize CORS origins from JSON, CSV, or list inputs."""
        return _split_list(value) or DEFAULT_CORS_ORIGINS.copy()

    @field_validator("worker_queue_names", mode="before")
    @classmethod
    def _split_worker_queue_names(cls, value: str | list[str] | None) -> list[str]:
        """Normalize worker queue names from JSON, CSV, or list inputs."""
        return _split_list(value) or ["default"]

    @field_validator("health_allowlist", mode="before")
    @classmethod
    def _split_health_allowlist(cls, value: str | list[str] | None) -> list[str]:
        """Normalize health allowlist entries from JSON, CSV, or list inputs."""
        return _split_list(value)

    @field_validator("scraper_api_url", "transcription_api_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if isinstance(value, str):
            value = value.strip().rstrip("/")
            return value or None
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""
    return Settings()


settings = get_settings()

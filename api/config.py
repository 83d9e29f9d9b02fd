"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, RedisDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Markup below this size usually means a bot wall or an error page
CRAWL_MIN_HTML_BYTES = 5000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 1
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Database
    database_url: PostgresDsn

    # Redis
    redis_url: RedisDsn

    # Sentry
    sentry_dsn: str | None = None

    # Collectors
    collector_suite_factory: str | None = None  # dotted path, e.g. "myapp.collectors:build_suite"
    collector_timeout_seconds: float = 15.0
    crawl_timeout_seconds: float = 30.0
    crawl_min_html_bytes: int = CRAWL_MIN_HTML_BYTES

    # Validator reachability probes
    probe_timeout_seconds: float = 5.0
    probe_batch_size: int = 5
    probe_user_agent: str = "Mozilla/5.0 (compatible; LaunchPilotBot/1.0)"

    # Scoring
    category_weights: dict[str, float] | None = None

    # Task sync
    task_batch_size: int = 50
    task_lock_backend: Literal["memory", "redis"] = "redis"
    task_lock_timeout_seconds: float = 60.0

    # Jobs
    scan_job_timeout_seconds: int = 600

    @field_validator("category_weights")
    @classmethod
    def _weights_sum_to_one(cls, value: dict[str, float] | None) -> dict[str, float] | None:
        if value is None:
            return value
        total = sum(value.values())
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"category_weights must sum to 1.0, got {total:.3f}")
        return value

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.env == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    try:
        return Settings()  # type: ignore[call-arg]
    except Exception as e:
        if "validation" in type(e).__name__.lower() or "required" in str(e).lower():
            raise RuntimeError(
                "Missing or invalid environment variables. Set DATABASE_URL and REDIS_URL."
            ) from e
        raise

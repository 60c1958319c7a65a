"""Application settings and configuration."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="JOBMIRROR_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Paths
    data_dir: Path = Field(default=Path("data"), description="Directory holding the SQLite database")
    db_path: Path | None = Field(default=None, description="Database file; defaults to <data_dir>/jobs.db")

    # Upstream
    upstream_base_url: str = Field(default="https://alljobs.teletalk.com.bd", description="alljobs API origin")
    page_size: int = Field(default=20, ge=1, le=100, description="Catalog items requested per page")
    request_timeout: float = Field(default=25.0, gt=0, description="Per-request timeout in seconds")
    page_delay: float = Field(default=0.0, ge=0, description="Pause between catalog page requests in seconds")

    # Store
    busy_timeout_ms: int = Field(default=5000, ge=0, description="SQLite busy timeout for every connection")

    # Sync driver
    sync_interval_minutes: int = Field(default=30, description="Interval for `jobmirror sync --watch`")
    sync_lock_stale_minutes: int = Field(default=30, ge=1, description="Age after which a held sync lock is abandoned")

    # Logging / Sentry
    log_level: str = Field(default="INFO", description="loguru level for the stderr sink")
    sentry_dsn: str = Field(default="", description="Sentry DSN, empty string disables Sentry")
    sentry_environment: str = Field(default="development", description="Sentry environment tag (e.g. production, development)")

    @field_validator("sync_interval_minutes", mode="after")
    @classmethod
    def at_least_one_minute(cls, v: int) -> int:
        return max(1, v)

    @property
    def database_path(self) -> Path:
        return self.db_path or self.data_dir / "jobs.db"


settings = Settings()

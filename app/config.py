"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone name or UTC offset used for stored timestamps",
    )
    notification_max_per_user: int = Field(
        default=50,
        description="Soft cap of notifications kept for a single user",
        gt=0,
    )
    notification_cleanup_enabled: bool = Field(
        default=True,
        description="Enable the background retention sweep and age purge jobs",
    )
    notification_retention_days: int = Field(
        default=30,
        description="Notifications older than this many days are purged daily",
        gt=0,
    )
    notification_sweep_interval_minutes: int = Field(
        default=60,
        description="Minutes between two retention sweeps across all users",
        gt=0,
    )
    notification_purge_hour: int = Field(
        default=2,
        description="Hour of the day (application timezone) for the age purge",
        ge=0,
        le=23,
    )
    websocket_send_timeout_seconds: float = Field(
        default=5.0,
        description="Write deadline applied to every live notification push",
        gt=0,
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]

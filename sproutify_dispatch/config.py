"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy with service-level credentials",
        min_length=1,
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending scheduled emails via the REST API",
    )
    sendgrid_sender: str = Field(
        default="noreply@sproutify.com",
        description="Email address that will appear as the sender of scheduled messages",
        min_length=3,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used to interpret timestamps stored without tzinfo",
    )
    dispatch_window_seconds: int = Field(
        default=60,
        description="Width of the catch-up window used to select due notifications",
        gt=0,
    )
    dispatch_catch_up: bool = Field(
        default=False,
        description="Select every pending notification due up to now instead of the sliding window",
    )
    dispatch_claim_ttl_seconds: int = Field(
        default=300,
        description="Seconds after which a claim left by an interrupted run may be taken over",
        gt=0,
    )
    default_email_subject: str = Field(
        default="Notification",
        description="Subject and in-app title used when a queued row has no title",
        min_length=1,
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @model_validator(mode="after")
    def _validate_sender(self) -> "Settings":
        if "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self

    @property
    def email_enabled(self) -> bool:
        return bool(self.sendgrid_api_key)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]

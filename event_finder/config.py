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
        default="sqlite:///./event_finder.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    jwt_secret: str = Field(
        description="Shared secret used to verify tokens issued by the auth provider",
        min_length=1,
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_audience: str | None = Field(
        default=None,
        description="Expected ``aud`` claim. Audience verification is skipped when unset",
    )
    service_key: str | None = Field(
        default=None,
        description="Key required in the X-Service-Key header by the internal job endpoints",
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending notification emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notification emails",
        min_length=3,
    )
    sendgrid_sender_name: str = Field(
        default="Local Event Finder", description="Display name of the sender"
    )
    site_url: str = Field(
        default="https://event-finder.app",
        description="Public URL of the web client, used for links inside emails",
    )
    event_timezone: str = Field(
        default="UTC",
        description="Timezone in which event dates and times are expressed",
    )
    reminder_sweep_interval_minutes: int = Field(
        default=15, gt=0, description="Minutes between reminder sweeps"
    )
    reminder_tolerance_minutes: float | None = Field(
        default=None,
        gt=0,
        description="Half-width of the reminder window. Defaults to half the sweep interval",
    )
    notification_retention_days: int = Field(
        default=30, gt=0, description="Age after which notifications are purged"
    )
    email_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Upper bound for a single email provider call"
    )
    email_max_attempts: int = Field(
        default=3, ge=1, description="Attempts per email, including the first one"
    )
    email_backoff_seconds: float = Field(
        default=0.5, ge=0, description="Delay before the first email retry"
    )
    email_backoff_max_seconds: float = Field(
        default=8.0, ge=0, description="Upper bound for the email retry delay"
    )
    dispatch_concurrency: int = Field(
        default=10, ge=1, description="Recipients processed concurrently by bulk notify"
    )
    scheduler_enabled: bool = Field(
        default=True, description="Run the periodic reminder and retention jobs"
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    log_json: bool = Field(default=False, description="Emit logs as JSON lines")

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self

    @property
    def email_enabled(self) -> bool:
        return bool(self.sendgrid_api_key and self.sendgrid_sender)

    @property
    def reminder_tolerance(self) -> float:
        """Return the reminder window half-width in minutes."""

        if self.reminder_tolerance_minutes is not None:
            return self.reminder_tolerance_minutes
        return self.reminder_sweep_interval_minutes / 2


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]

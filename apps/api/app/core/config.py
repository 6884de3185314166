"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # Public booking site (cancel/reschedule links fall back to this)
    WEBAPP_URL: str = "http://localhost:3000"

    # Locale used when an attendee has none
    DEFAULT_LOCALE: str = "en"

    # Internal endpoints (booking lifecycle hooks, cleanup)
    INTERNAL_SECRET: str = ""  # Secret for /internal/workflows/* endpoints

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Gmail attendees get a 1h email reminder unless a workflow covers it
    MANDATORY_REMINDER_ENABLED: bool = True

    @property
    def webapp_url(self) -> str:
        """WEBAPP_URL without a trailing slash."""
        return self.WEBAPP_URL.rstrip("/")


settings = Settings()

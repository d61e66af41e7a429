from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class PollerSettings(BaseSettings):
    """Client-side polling and upload retry configuration."""
    POLL_INTERVAL_MS: int = Field(default=2000, gt=0)
    POLL_MAX_ATTEMPTS: int = Field(default=90, gt=0)
    POLL_TIMEOUT_SECONDS: float | None = Field(default=None, gt=0)
    UPLOAD_RETRY_DELAY_MS: int = 250

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_poller_settings() -> PollerSettings:
    """Return a fresh poller settings instance."""
    return PollerSettings()

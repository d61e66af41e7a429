from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class WorkerSettings(BaseSettings):
    """Configuration for the AI-backed worker tasks."""
    MAX_DOCUMENT_CHARS: int = 80_000
    EXTRACTION_MAX_TOKENS: int = 8000
    COMPLIANCE_MAX_TOKENS: int = 8000
    DELIVERABLE_MAX_TOKENS: int = 6000

    model_config = ConfigDict(env_file=".env", extra="ignore")

def get_worker_settings() -> WorkerSettings:
    """Return a fresh worker settings instance."""
    return WorkerSettings()

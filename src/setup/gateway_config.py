from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class GatewaySettings(BaseSettings):
    """Endpoints and keys of the hosted collaborators."""
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: str | None = None
    AI_MODEL: str = "openai/gpt-5.2"
    AI_TEMPERATURE: float = 0.1
    AI_TIMEOUT_SECONDS: float = 120.0
    BACKEND_URL: str = "http://localhost:54321"
    BACKEND_API_KEY: str | None = None
    FUNCTIONS_BASE_URL: str = "http://localhost:8000"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_gateway_settings() -> GatewaySettings:
    """Return a fresh gateway settings instance."""
    return GatewaySettings()

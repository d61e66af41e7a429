from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ApiSettings(BaseSettings):
    APP_NAME: str = "pv-review"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_api_settings() -> ApiSettings:
    return ApiSettings() # type: ignore[call-arg]

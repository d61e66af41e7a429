import logging

from fastapi import FastAPI

from src.setup.api_config import ApiSettings
from src.setup.app_config import configure_di

settings = ApiSettings()
logging.basicConfig(level=settings.LOG_LEVEL)
configure_di()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="PV design review API with task submission and progress polling",
)

from src.pv_review.presentation.routes import router as api_router  # noqa: E402

app.include_router(api_router, prefix="")

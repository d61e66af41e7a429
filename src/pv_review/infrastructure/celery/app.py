from celery import Celery

from src.setup.celery_config import get_celery_settings

_settings = get_celery_settings()

celery_app = Celery(
    "pv_review",
    broker=_settings.REDIS_URL,
    backend=_settings.REDIS_URL,
    include=[
        "src.pv_review.worker.tasks.compliance",
        "src.pv_review.worker.tasks.deliverables",
    ],
)

celery_app.conf.update(
    task_ignore_result=False,
    result_expires=_settings.RESULT_TTL_SECONDS,
    task_serializer="json",
    accept_content=["json"],
)

import os

from src.pv_review.infrastructure.celery.app import celery_app
from src.setup.app_config import configure_di
from src.setup.celery_config import get_celery_settings


def main() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO")
    concurrency = os.getenv("CELERY_CONCURRENCY", "2")
    queues = os.getenv("CELERY_QUEUES", get_celery_settings().REVIEW_QUEUE)
    configure_di(worker=True)
    celery_app.worker_main(
        [
            "worker",
            "-l",
            log_level,
            "--concurrency",
            concurrency,
            "-Q",
            queues,
        ]
    )


if __name__ == "__main__":
    main()

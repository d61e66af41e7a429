import asyncio
import logging

from src.pv_review.application.jobs import ReviewJobs
from src.pv_review.infrastructure.celery.app import celery_app
from src.pv_review.worker.reporter import TaskReporter

logger = logging.getLogger(__name__)


@celery_app.task(name="analyze_compliance", bind=True)
def analyze_compliance(self, message: dict) -> dict:
    """
    Check the project files against the standards library.
    """
    reporter = TaskReporter(self)
    logger.info("Compliance analysis started", extra={"task_id": reporter.task_id})
    return asyncio.run(ReviewJobs().run_compliance(message.get("payload") or {}, reporter))

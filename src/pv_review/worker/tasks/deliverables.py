import asyncio
import logging

from src.pv_review.application.jobs import ReviewJobs
from src.pv_review.infrastructure.celery.app import celery_app
from src.pv_review.worker.reporter import TaskReporter

logger = logging.getLogger(__name__)


@celery_app.task(name="generate_deliverables", bind=True)
def generate_deliverables(self, message: dict) -> dict:
    """
    Generate the review deliverables still missing for a submission.
    """
    reporter = TaskReporter(self)
    logger.info("Deliverable generation started", extra={"task_id": reporter.task_id})
    return asyncio.run(ReviewJobs().run_deliverables(message.get("payload") or {}, reporter))

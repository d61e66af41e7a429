import inject

from src.pv_review.application.poller import TaskPoller
from src.pv_review.application.submitter import TaskSubmitter
from src.pv_review.application.workflows import ReviewWorkflow
from src.pv_review.domain.repositories import (
    ChatCompletionRepository,
    DeliverableRepository,
    DocumentRepository,
    FunctionGatewayRepository,
    IdentityRepository,
    ObjectStorageRepository,
    TaskManagerRepository,
    TaskStoreRepository,
    TaskWriterRepository,
)
from src.pv_review.infrastructure.celery.repositories import CeleryTaskManager
from src.pv_review.infrastructure.gateway.ai_gateway import AiGatewayClient
from src.pv_review.infrastructure.gateway.functions import HttpFunctionGateway
from src.pv_review.infrastructure.gateway.identity import HttpIdentityProvider
from src.pv_review.infrastructure.gateway.storage import HttpObjectStorage
from src.pv_review.infrastructure.gateway.task_store import HttpTaskStore
from src.pv_review.infrastructure.postgres.orm import PostgresOrm
from src.pv_review.infrastructure.postgres.repositories import (
    PostgresDeliverableRepository,
    PostgresDocumentRepository,
    PostgresTaskStore,
)
from src.setup.db_config import get_database_settings


def configure_di(*, worker: bool = False) -> None:
    """Bind repository protocols to their implementations once per process."""
    if inject.is_configured():
        return

    def _config(binder: inject.Binder) -> None:
        settings = get_database_settings()
        orm = PostgresOrm(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, null_pool=worker)
        task_store = PostgresTaskStore(orm)

        binder.bind(PostgresOrm, orm)
        binder.bind(TaskStoreRepository, task_store)
        binder.bind(TaskWriterRepository, task_store)
        binder.bind(TaskManagerRepository, CeleryTaskManager())
        binder.bind(DocumentRepository, PostgresDocumentRepository(orm))
        binder.bind(DeliverableRepository, PostgresDeliverableRepository(orm))
        binder.bind(ChatCompletionRepository, AiGatewayClient())
        binder.bind(IdentityRepository, HttpIdentityProvider())
        binder.bind(ObjectStorageRepository, HttpObjectStorage())
        binder.bind(FunctionGatewayRepository, HttpFunctionGateway())

    inject.configure(_config)


def build_review_workflow(credential: str) -> ReviewWorkflow:
    """Client-side workflow that talks to the review service over HTTP."""
    return ReviewWorkflow(
        submitter=TaskSubmitter(HttpFunctionGateway()),
        poller_factory=lambda: TaskPoller(HttpTaskStore(credential)),
    )

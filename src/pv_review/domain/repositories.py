from __future__ import annotations

from typing import Any, Protocol

from src.pv_review.domain.models.chat import ChatCompletion, ChatMessage
from src.pv_review.domain.models.deliverables import Deliverable, DeliverableType
from src.pv_review.domain.models.identity import UserIdentity
from src.pv_review.domain.models.project import DocumentText
from src.pv_review.domain.models.task import Task
from src.pv_review.domain.models.task_status import TaskStatus


class TaskStoreRepository(Protocol):
    """Read-only view of the task store used by pollers."""

    async def read_task(self, task_id: str) -> TaskStatus:
        """Return the current status of ``task_id``."""


class TaskWriterRepository(Protocol):
    """Writer side of the task store, used by the service and the worker."""

    async def create_task(self, user_id: str, task: Task) -> str:
        """Persist a new pending task and return its id."""

    async def get_task(self, user_id: str, task_id: str) -> Task:
        """Fetch a task by id and enforce ownership."""

    async def update_progress(self, task_id: str, progress: int) -> TaskStatus:
        """Move a task to processing; progress never decreases."""

    async def complete_task(self, task_id: str, result: Any) -> TaskStatus:
        """Record the single terminal success transition."""

    async def fail_task(self, task_id: str, error: str) -> TaskStatus:
        """Record the single terminal failure transition."""


class TaskManagerRepository(Protocol):
    """Repository contract for enqueueing tasks on the worker."""

    async def enqueue(self, task: Task) -> str:
        """Schedule a task and return its identifier."""


class FunctionGatewayRepository(Protocol):
    """Transport used by the task submitter to reach the remote functions."""

    async def invoke(self, function_name: str, body: dict[str, Any], credential: str) -> dict[str, Any]:
        """Call ``function_name`` and return the decoded JSON body."""


class ChatCompletionRepository(Protocol):
    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: dict[str, Any] | None = None,
        response_format: dict[str, Any] | None = None,
        max_completion_tokens: int = 8000,
    ) -> ChatCompletion:
        """Run one chat completion against the AI gateway."""


class IdentityRepository(Protocol):
    async def get_user(self, credential: str) -> UserIdentity:
        """Resolve a bearer credential to a user, raising AuthenticationError."""


class DocumentRepository(Protocol):
    """Documents whose text was extracted upstream."""

    async def get_project_owner(self, project_id: str) -> str | None:
        """Return the owning user id, or ``None`` when the project does not exist."""

    async def list_global_standards(self) -> list[DocumentText]:
        """Return the shared standards library."""

    async def list_project_files(self, project_id: str) -> list[DocumentText]:
        """Return the project files in upload order."""


class DeliverableRepository(Protocol):
    async def ensure_submission(
        self, project_id: str, submission_id: str | None, submitted_by: str
    ) -> str:
        """Return ``submission_id`` when it exists for ``project_id``, otherwise create a submission."""

    async def submission_project(self, submission_id: str) -> str | None:
        """Return the project a submission belongs to, or ``None`` when it is unknown."""

    async def list_deliverables(self, submission_id: str) -> list[Deliverable]:
        """Return the deliverables stored for a submission."""

    async def save_deliverable(
        self, submission_id: str, deliverable_type: DeliverableType, content: str
    ) -> Deliverable:
        """Insert a generated deliverable or update the existing one."""


class ObjectStorageRepository(Protocol):
    async def upload(self, bucket: str, object_path: str, content: bytes, credential: str) -> None:
        """Store ``content`` under ``object_path``; raise GatewayError on failure."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any, cast

import inject
from pydantic import ValidationError

from src.pv_review.application import prompts
from src.pv_review.domain.exceptions import (
    AuthenticationError,
    MalformedResultError,
    ProjectAccessDeniedError,
    ProjectNotFoundError,
)
from src.pv_review.domain.models import (
    CompliancePayload,
    DeliverablesPayload,
    DocumentText,
    ExtractionPayload,
    Task,
    TaskKind,
    TaskMetadata,
    TaskPayload,
    TaskStatus,
)
from src.pv_review.domain.models.chat import ChatMessage
from src.pv_review.domain.models.identity import UserIdentity
from src.pv_review.domain.models.outcomes import Deferred, Immediate, Rejected, SubmissionOutcome
from src.pv_review.domain.repositories import (
    ChatCompletionRepository,
    DeliverableRepository,
    DocumentRepository,
    IdentityRepository,
    TaskManagerRepository,
    TaskWriterRepository,
)
from src.setup.worker_config import get_worker_settings

logger = logging.getLogger(__name__)

NO_STANDARDS_MESSAGE = "No standards found in library. Please upload standards first."
NO_READABLE_STANDARDS_MESSAGE = (
    "No readable standards content found (PDFs may be scanned). "
    "Please upload text-based standards PDFs."
)
NO_PROJECT_FILES_MESSAGE = "No project files found"

_PAYLOADS: dict[TaskKind, type[TaskPayload]] = {
    TaskKind.EXTRACTION: ExtractionPayload,
    TaskKind.COMPLIANCE: CompliancePayload,
    TaskKind.DELIVERABLES: DeliverablesPayload,
}


def decode_answer(text: str | None) -> dict[str, Any]:
    """Decode the JSON object answered by the model."""
    if not text:
        raise MalformedResultError("Empty AI response")
    try:
        answer = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResultError("Invalid AI response format") from exc
    if not isinstance(answer, dict):
        raise MalformedResultError("Invalid AI response format")
    return answer


def rejection_reason(exc: ValidationError) -> str:
    errors = exc.errors()
    for error in errors:
        if error["loc"] == ("projectId",) and error["type"] in ("missing", "string_too_short"):
            return "Missing projectId"
    first = errors[0]
    field = ".".join(str(part) for part in first["loc"]) or "payload"
    return f"Invalid {field}: {first['msg']}"


def readable(documents: list[DocumentText]) -> list[DocumentText]:
    return [doc for doc in documents if doc.content]


class TaskService:
    """
    Accepts remote function invocations: authenticates the caller, checks the
    preconditions of the requested work, then either answers immediately or
    records a pending task and hands it to the worker.
    """

    def __init__(self) -> None:
        self._identity = cast(IdentityRepository, inject.instance(IdentityRepository))
        self._documents = cast(DocumentRepository, inject.instance(DocumentRepository))
        self._deliverables = cast(DeliverableRepository, inject.instance(DeliverableRepository))
        self._tasks = cast(TaskWriterRepository, inject.instance(TaskWriterRepository))
        self._task_manager = cast(TaskManagerRepository, inject.instance(TaskManagerRepository))
        self._chat = cast(ChatCompletionRepository, inject.instance(ChatCompletionRepository))
        self._settings = get_worker_settings()

    async def authenticate(self, credential: str | None) -> UserIdentity:
        if not credential:
            raise AuthenticationError("Missing authorization header")
        return await self._identity.get_user(credential)

    async def invoke(
        self, kind: TaskKind, body: dict[str, Any], credential: str | None
    ) -> SubmissionOutcome:
        user = await self.authenticate(credential)
        try:
            payload = _PAYLOADS[kind].model_validate(body)
        except ValidationError as exc:
            return Rejected(reason=rejection_reason(exc))

        await self._check_owner(payload.project_id, user)

        if kind is TaskKind.EXTRACTION:
            return await self.extract_data(cast(ExtractionPayload, payload))
        if kind is TaskKind.COMPLIANCE:
            return await self.request_compliance(user, cast(CompliancePayload, payload))
        return await self.request_deliverables(user, cast(DeliverablesPayload, payload))

    async def extract_data(self, payload: ExtractionPayload) -> SubmissionOutcome:
        """Run the extraction synchronously with a forced tool call."""
        files = await self._documents.list_project_files(payload.project_id)
        if not files:
            return Rejected(reason=NO_PROJECT_FILES_MESSAGE)

        completion = await self._chat.complete(
            [
                ChatMessage(role="system", content=prompts.EXTRACTION_SYSTEM_PROMPT),
                ChatMessage(
                    role="user",
                    content=prompts.extraction_user_prompt(files, self._settings.MAX_DOCUMENT_CHARS),
                ),
            ],
            tools=[prompts.EXTRACTION_TOOL],
            tool_choice=prompts.EXTRACTION_TOOL_CHOICE,
            max_completion_tokens=self._settings.EXTRACTION_MAX_TOKENS,
        )
        extracted = decode_answer(completion.tool_arguments)
        logger.info(
            "Extraction finished",
            extra={"project_id": payload.project_id, "tokens": completion.total_tokens},
        )
        return Immediate(
            result={
                "success": True,
                "projectId": payload.project_id,
                "extractedData": extracted,
                "model": completion.model,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

    async def request_compliance(
        self, user: UserIdentity, payload: CompliancePayload
    ) -> SubmissionOutcome:
        standards = await self._documents.list_global_standards()
        if not standards:
            return Rejected(reason=NO_STANDARDS_MESSAGE)
        if not readable(standards):
            return Rejected(reason=NO_READABLE_STANDARDS_MESSAGE)
        return await self.push_task(user, TaskKind.COMPLIANCE, payload)

    async def request_deliverables(
        self, user: UserIdentity, payload: DeliverablesPayload
    ) -> SubmissionOutcome:
        requested = payload.submission_id
        if requested and await self._deliverables.submission_project(requested) != payload.project_id:
            logger.warning(
                "Submission does not belong to project",
                extra={"submission_id": requested, "project_id": payload.project_id},
            )
            requested = None
        submission_id = await self._deliverables.ensure_submission(
            payload.project_id, requested, user.email or "Unknown"
        )
        payload = payload.model_copy(update={"submission_id": submission_id})
        return await self.push_task(user, TaskKind.DELIVERABLES, payload)

    async def push_task(self, user: UserIdentity, kind: TaskKind, payload: TaskPayload) -> Deferred:
        task = await self.create_task(user, kind, payload)
        return Deferred(task_id=cast(str, task.id))

    async def create_task(self, user: UserIdentity, kind: TaskKind, payload: TaskPayload) -> Task:
        """
        Record a pending task and enqueue it on the worker.
        """
        task = Task(
            kind=kind,
            payload=payload,
            status=TaskStatus(),
            metadata=TaskMetadata(created_at=datetime.now(UTC)),
        )
        task.id = await self._tasks.create_task(user.id, task)
        try:
            await self._task_manager.enqueue(task)
        except Exception as exc:
            await self._tasks.fail_task(task.id, str(exc))
            raise
        logger.info("Task enqueued", extra={"task_id": task.id, "kind": kind.value})
        return task

    async def get_status(self, task_id: str, credential: str | None) -> TaskStatus:
        """Return the current status for the task identified by ``task_id``."""
        user = await self.authenticate(credential)
        task = await self._tasks.get_task(user.id, task_id)
        return task.status

    async def _check_owner(self, project_id: str, user: UserIdentity) -> None:
        owner = await self._documents.get_project_owner(project_id)
        if owner is None:
            raise ProjectNotFoundError(project_id)
        if owner != user.id:
            raise ProjectAccessDeniedError(project_id, user.id)

from __future__ import annotations

import importlib
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.pv_review.domain.exceptions import (
    AuthenticationError,
    TaskAccessDeniedError,
    TaskNotFoundError,
)
from src.pv_review.domain.models.chat import ChatCompletion, ChatMessage
from src.pv_review.domain.models.deliverables import Deliverable, DeliverableStatus, DeliverableType
from src.pv_review.domain.models.identity import UserIdentity
from src.pv_review.domain.models.project import DocumentText
from src.pv_review.domain.models.task import Task
from src.pv_review.domain.models.task_status import TaskStatus
from src.pv_review.domain.repositories import (
    ChatCompletionRepository,
    DeliverableRepository,
    DocumentRepository,
    IdentityRepository,
    TaskManagerRepository,
    TaskStoreRepository,
    TaskWriterRepository,
)

OWNER_TOKEN = "token-owner"
OTHER_TOKEN = "token-other"
OWNER = UserIdentity(id="user-1", email="reviewer@example.com")
OTHER = UserIdentity(id="user-2", email=None)
PROJECT_ID = "project-1"


class InMemoryTaskStore(TaskStoreRepository, TaskWriterRepository):
    """Task store kept in a dict; transitions go through ``TaskStatus`` like the real one."""

    def __init__(self) -> None:
        self.tasks: dict[str, Task] = {}
        self.owners: dict[str, str] = {}
        self.writes: list[tuple[str, TaskStatus]] = []
        self._counter = 0

    async def create_task(self, user_id: str, task: Task) -> str:
        if task.id is None:
            self._counter += 1
            task.id = f"{task.kind.value}-{self._counter}"
        self.tasks[task.id] = task
        self.owners[task.id] = user_id
        return task.id

    async def get_task(self, user_id: str, task_id: str) -> Task:
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        if self.owners[task_id] != user_id:
            raise TaskAccessDeniedError(task_id, user_id)
        return self.tasks[task_id]

    async def read_task(self, task_id: str) -> TaskStatus:
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        return self.tasks[task_id].status

    async def update_progress(self, task_id: str, progress: int) -> TaskStatus:
        return self._write(task_id, self.tasks[task_id].status.advance(progress, task_id))

    async def complete_task(self, task_id: str, result: Any) -> TaskStatus:
        return self._write(task_id, self.tasks[task_id].status.complete(result, task_id))

    async def fail_task(self, task_id: str, error: str) -> TaskStatus:
        return self._write(task_id, self.tasks[task_id].status.fail(error, task_id))

    def _write(self, task_id: str, status: TaskStatus) -> TaskStatus:
        self.tasks[task_id].status = status
        self.writes.append((task_id, status))
        return status


class StubTaskManager(TaskManagerRepository):
    """Simple in-memory TaskManager replacement for tests."""

    def __init__(self) -> None:
        self.enqueued_tasks: list[Task] = []
        self.error: Exception | None = None

    async def enqueue(self, task: Task) -> str:
        if self.error is not None:
            raise self.error
        self.enqueued_tasks.append(task)
        return task.id or ""


class StubIdentity(IdentityRepository):
    def __init__(self) -> None:
        self.users = {OWNER_TOKEN: OWNER, OTHER_TOKEN: OTHER}

    async def get_user(self, credential: str) -> UserIdentity:
        try:
            return self.users[credential]
        except KeyError as exc:
            raise AuthenticationError("Unauthorized") from exc


class StubDocuments(DocumentRepository):
    def __init__(self) -> None:
        self.owners: dict[str, str] = {PROJECT_ID: OWNER.id}
        self.standards: list[DocumentText] = [
            DocumentText(name="IEC-62548.pdf", content="Array cabling shall ...", file_type="standard")
        ]
        self.files: dict[str, list[DocumentText]] = {
            PROJECT_ID: [DocumentText(name="layout.pdf", content="24 modules, 2 strings")]
        }

    async def get_project_owner(self, project_id: str) -> str | None:
        return self.owners.get(project_id)

    async def list_global_standards(self) -> list[DocumentText]:
        return list(self.standards)

    async def list_project_files(self, project_id: str) -> list[DocumentText]:
        return list(self.files.get(project_id, []))


class StubDeliverables(DeliverableRepository):
    def __init__(self) -> None:
        self.existing: dict[str, list[Deliverable]] = {}
        self.saved: list[tuple[str, DeliverableType, str]] = []
        self.submissions: list[tuple[str, str | None, str]] = []
        self.submission_owners: dict[str, str] = {}

    async def ensure_submission(
        self, project_id: str, submission_id: str | None, submitted_by: str
    ) -> str:
        self.submissions.append((project_id, submission_id, submitted_by))
        if submission_id and self.submission_owners.get(submission_id) == project_id:
            return submission_id
        return "submission-new"

    async def submission_project(self, submission_id: str) -> str | None:
        return self.submission_owners.get(submission_id)

    async def list_deliverables(self, submission_id: str) -> list[Deliverable]:
        return list(self.existing.get(submission_id, []))

    async def save_deliverable(
        self, submission_id: str, deliverable_type: DeliverableType, content: str
    ) -> Deliverable:
        self.saved.append((submission_id, deliverable_type, content))
        return Deliverable(
            id=f"d-{len(self.saved)}",
            type=deliverable_type,
            name=deliverable_type.display_name,
            status=DeliverableStatus.GENERATED,
            content=content,
        )


class StubChat(ChatCompletionRepository):
    """Answers with queued completions, or with ``default`` once the queue is empty."""

    def __init__(self, *answers: ChatCompletion) -> None:
        self.answers = list(answers)
        self.default = ChatCompletion(model="stub-model", content="generated text", total_tokens=10)
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: dict[str, Any] | None = None,
        response_format: dict[str, Any] | None = None,
        max_completion_tokens: int = 8000,
    ) -> ChatCompletion:
        self.calls.append(
            {
                "messages": messages,
                "tools": tools,
                "tool_choice": tool_choice,
                "response_format": response_format,
            }
        )
        if self.answers:
            return self.answers.pop(0)
        return self.default


class RecordingReporter:
    """Collects what a job reports, applying it to an in-memory task store."""

    def __init__(self, store: InMemoryTaskStore, task_id: str) -> None:
        self.store = store
        self.task_id = task_id
        self.progress: list[int] = []

    async def report_progress(self, progress: int) -> None:
        self.progress.append(progress)
        await self.store.update_progress(self.task_id, progress)

    async def report_completed(self, result: Any) -> None:
        await self.store.complete_task(self.task_id, result)

    async def report_failed(self, error: str) -> None:
        await self.store.fail_task(self.task_id, error)


@dataclass
class Stubs:
    tasks: InMemoryTaskStore = field(default_factory=InMemoryTaskStore)
    task_manager: StubTaskManager = field(default_factory=StubTaskManager)
    identity: StubIdentity = field(default_factory=StubIdentity)
    documents: StubDocuments = field(default_factory=StubDocuments)
    deliverables: StubDeliverables = field(default_factory=StubDeliverables)
    chat: StubChat = field(default_factory=StubChat)


@pytest.fixture
def env_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide environment variables read by the settings classes."""
    monkeypatch.setenv("APP_NAME", "Test API")
    monkeypatch.setenv("APP_VERSION", "0.1.0")
    monkeypatch.setenv("MAX_DOCUMENT_CHARS", "2000")


def _patch_inject_instance(
    monkeypatch: pytest.MonkeyPatch, stubs: Stubs
) -> Callable[[object], object]:
    """Patch `inject.instance` to return the stub bound to each protocol."""
    import inject

    bindings: dict[object, object] = {
        TaskStoreRepository: stubs.tasks,
        TaskWriterRepository: stubs.tasks,
        TaskManagerRepository: stubs.task_manager,
        IdentityRepository: stubs.identity,
        DocumentRepository: stubs.documents,
        DeliverableRepository: stubs.deliverables,
        ChatCompletionRepository: stubs.chat,
    }

    def fake_instance(interface: object) -> object:
        try:
            return bindings[interface]
        except KeyError:
            raise RuntimeError(f"Unexpected dependency request: {interface}") from None

    monkeypatch.setattr(inject, "instance", fake_instance)
    return fake_instance


@pytest.fixture
def stubs(env_settings: None, monkeypatch: pytest.MonkeyPatch) -> Stubs:
    stubs = Stubs()
    _patch_inject_instance(monkeypatch, stubs)
    return stubs


@pytest.fixture
def stubbed_services(stubs: Stubs):
    """Reload service module with stubbed repository injection."""
    services_module = importlib.reload(
        importlib.import_module("src.pv_review.application.services")
    )
    return services_module, stubs


@pytest.fixture
def api_client(stubs: Stubs):
    """FastAPI test client with services wired to the stub repositories."""
    # Reload modules so module-level singletons pick up the patched injector.
    services_module = importlib.reload(  # noqa: F841
        importlib.import_module("src.pv_review.application.services")
    )
    routes_module = importlib.reload(importlib.import_module("src.pv_review.presentation.routes"))

    app = FastAPI()
    app.include_router(routes_module.router)
    client = TestClient(app)
    return client, stubs


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}

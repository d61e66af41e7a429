from __future__ import annotations

from types import SimpleNamespace

import pytest

from conftest import InMemoryTaskStore
from src.pv_review.domain.models import CompliancePayload, Task, TaskKind, TaskState
from src.pv_review.domain.models.payloads import ExtractionPayload
from src.pv_review.infrastructure.celery.repositories import CeleryTaskManager
from src.pv_review.infrastructure.celery.task_registry import TaskRegistry
from src.pv_review.worker.reporter import TaskReporter


class FakeCelery:
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict]] = []

    def send_task(self, name: str, **kwargs):
        self.sent.append((name, kwargs))
        return SimpleNamespace(id=kwargs["task_id"])


class FakeCeleryTask:
    def __init__(self, task_id: str) -> None:
        self.request = SimpleNamespace(id=task_id)
        self.states: list[tuple[str, dict]] = []

    def update_state(self, state: str, meta: dict) -> None:
        self.states.append((state, meta))


@pytest.mark.asyncio
async def test_enqueue_uses_store_id_as_celery_id() -> None:
    celery = FakeCelery()
    manager = CeleryTaskManager(celery, TaskRegistry(queue="review-test"))
    task = Task(id="task-1", kind=TaskKind.COMPLIANCE, payload=CompliancePayload(project_id="p-1"))

    task_id = await manager.enqueue(task)

    assert task_id == "task-1"
    name, kwargs = celery.sent[0]
    assert name == "analyze_compliance"
    assert kwargs["queue"] == "review-test"
    assert kwargs["task_id"] == "task-1"
    assert kwargs["args"] == [
        {
            "task_id": "task-1",
            "kind": "compliance",
            "payload": {"project_id": "p-1", "project_files": []},
        }
    ]


def test_extraction_has_no_worker_route() -> None:
    with pytest.raises(ValueError):
        TaskRegistry(queue="q").route_for_kind(TaskKind.EXTRACTION)


@pytest.mark.asyncio
async def test_enqueue_requires_an_id() -> None:
    task = Task(kind=TaskKind.EXTRACTION, payload=ExtractionPayload(project_id="p-1"))

    with pytest.raises(ValueError):
        await CeleryTaskManager(FakeCelery(), TaskRegistry(queue="q")).enqueue(task)


@pytest.mark.asyncio
async def test_reporter_writes_store_and_mirrors_progress_to_celery() -> None:
    store = InMemoryTaskStore()
    task_id = await store.create_task(
        "user-1", Task(kind=TaskKind.COMPLIANCE, payload=CompliancePayload(project_id="p-1"))
    )
    celery_task = FakeCeleryTask(task_id)
    reporter = TaskReporter(celery_task, writer=store)

    await reporter.report_progress(40)
    await reporter.report_progress(10)
    await reporter.report_completed({"ok": True})

    status = await store.read_task(task_id)
    assert status.state is TaskState.COMPLETED
    assert status.result == {"ok": True}
    assert celery_task.states == [("PROGRESS", {"progress": 40}), ("PROGRESS", {"progress": 40})]

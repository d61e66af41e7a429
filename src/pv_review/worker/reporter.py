from __future__ import annotations

import asyncio
from typing import Any

import inject

from src.pv_review.domain.repositories import TaskWriterRepository
from src.setup.app_config import configure_di


class TaskReporter:
    """Mirror task state updates to both Celery and the task store."""

    def __init__(self, celery_task: Any, writer: TaskWriterRepository | None = None) -> None:
        if writer is None:
            configure_di(worker=True)
            writer = inject.instance(TaskWriterRepository)
        self._task = celery_task
        self._writer = writer

    @property
    def task_id(self) -> str:
        return self._task.request.id

    async def report_progress(self, progress: int) -> None:
        status = await self._writer.update_progress(self.task_id, progress)
        await self._update_celery("PROGRESS", {"progress": status.progress})

    async def report_completed(self, result: Any) -> None:
        await self._writer.complete_task(self.task_id, result)

    async def report_failed(self, error: str) -> None:
        await self._writer.fail_task(self.task_id, error)

    async def _update_celery(self, state: str, meta: dict[str, Any]) -> None:
        await asyncio.to_thread(self._task.update_state, state=state, meta=meta)

from __future__ import annotations

import asyncio

from celery import Celery

from src.pv_review.domain.models.task import Task
from src.pv_review.domain.repositories import TaskManagerRepository
from src.pv_review.infrastructure.celery.app import celery_app
from src.pv_review.infrastructure.celery.task_registry import TaskRegistry


class CeleryTaskManager(TaskManagerRepository):
    """
    Hands recorded tasks to the Celery worker. The Celery task id is the task store id.
    """

    def __init__(self, celery_app_instance: Celery = celery_app, registry: TaskRegistry | None = None):
        self._celery_app = celery_app_instance
        self._registry = registry or TaskRegistry()

    async def enqueue(self, task: Task) -> str:
        """
        Enqueue a task and return the task id.
        """
        if task.id is None:
            raise ValueError("Task id is required to enqueue a task.")
        route = self._registry.route_for_kind(task.kind)
        message = {
            "task_id": task.id,
            "kind": task.kind.value,
            "payload": task.payload.model_dump(mode="json"),
        }
        async_result = await asyncio.to_thread(
            self._celery_app.send_task,
            route.celery_task,
            args=[message],
            queue=route.queue,
            task_id=task.id,
        )
        return async_result.id

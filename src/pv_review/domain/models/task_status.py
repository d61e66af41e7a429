from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.pv_review.domain.exceptions import InvalidTaskTransitionError
from src.pv_review.domain.models.task_state import TaskState


class TaskStatus(BaseModel):
    """
    Snapshot of a task as stored in the task store.

    ``result`` is populated only once the task is completed and ``error`` only
    once it failed. Transitions return new snapshots and refuse to touch a
    terminal one.
    """

    model_config = ConfigDict(frozen=True)

    state: TaskState = Field(default=TaskState.PENDING, description="Lifecycle state.")
    progress: int = Field(default=0, ge=0, le=100, description="Progress 0..100.")
    result: Any | None = Field(default=None, description="Result payload once completed.")
    error: str | None = Field(default=None, description="Failure message once failed.")

    @model_validator(mode="after")
    def _check_terminal_exclusivity(self) -> "TaskStatus":
        if self.state is TaskState.COMPLETED:
            if self.result is None or self.error is not None:
                raise ValueError("A completed task carries a result and no error")
        elif self.state is TaskState.FAILED:
            if self.error is None or self.result is not None:
                raise ValueError("A failed task carries an error and no result")
        elif self.result is not None or self.error is not None:
            raise ValueError("A non-terminal task carries neither result nor error")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def advance(self, progress: int, task_id: str = "") -> "TaskStatus":
        """Move to ``processing`` with at least the current progress."""
        self._ensure_open(task_id, TaskState.PROCESSING)
        return TaskStatus(state=TaskState.PROCESSING, progress=max(self.progress, progress))

    def complete(self, result: Any, task_id: str = "") -> "TaskStatus":
        self._ensure_open(task_id, TaskState.COMPLETED)
        return TaskStatus(state=TaskState.COMPLETED, progress=100, result=result)

    def fail(self, error: str, task_id: str = "") -> "TaskStatus":
        self._ensure_open(task_id, TaskState.FAILED)
        return TaskStatus(
            state=TaskState.FAILED,
            progress=self.progress,
            error=error or "Task failed with unknown error",
        )

    def _ensure_open(self, task_id: str, target: TaskState) -> None:
        if self.is_terminal:
            raise InvalidTaskTransitionError(task_id, self.state, target)

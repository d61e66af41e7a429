from pydantic import BaseModel, Field, SerializeAsAny

from src.pv_review.domain.models.payloads import TaskPayload
from src.pv_review.domain.models.task_kind import TaskKind
from src.pv_review.domain.models.task_metadata import TaskMetadata
from src.pv_review.domain.models.task_status import TaskStatus


class Task(BaseModel):
    id: str | None = Field(default=None, description="Assigned by the task store.")
    kind: TaskKind = Field(description="Category of work.")
    payload: SerializeAsAny[TaskPayload] = Field(description="Task-specific payload data.")
    status: TaskStatus = Field(default_factory=TaskStatus, description="Current status.")
    metadata: TaskMetadata = Field(default_factory=TaskMetadata)

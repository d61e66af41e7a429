from datetime import datetime

from pydantic import BaseModel, Field


class TaskMetadata(BaseModel):
    created_at: datetime | None = Field(default=None, description="When the task was created.")
    updated_at: datetime | None = Field(default=None, description="Last write by the worker.")

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.pv_review.domain.exceptions import (
    PollCancelledError,
    PollError,
    PollTimeoutError,
    SubmissionRejectedError,
    TaskFailedError,
)


class Immediate(BaseModel):
    """The remote worker answered synchronously."""

    outcome: Literal["immediate"] = "immediate"
    result: Any


class Deferred(BaseModel):
    """The remote worker accepted the work; poll ``task_id`` for its state."""

    outcome: Literal["deferred"] = "deferred"
    task_id: str


class Rejected(BaseModel):
    """The request was refused before any task was created."""

    outcome: Literal["rejected"] = "rejected"
    reason: str

    def raise_error(self) -> None:
        raise SubmissionRejectedError(self.reason)


SubmissionOutcome = Annotated[Immediate | Deferred | Rejected, Field(discriminator="outcome")]


class PollOutcome(BaseModel, ABC):
    model_config = ConfigDict(frozen=True)

    attempts: int = Field(ge=0, description="Number of task store reads performed.")

    @abstractmethod
    def unwrap(self, label: str = "Task") -> Any:
        """Return the result of a completed poll or raise the matching error."""


class PollCompleted(PollOutcome):
    outcome: Literal["completed"] = "completed"
    result: Any

    def unwrap(self, label: str = "Task") -> Any:
        return self.result


class PollFailed(PollOutcome):
    outcome: Literal["failed"] = "failed"
    error: str

    def unwrap(self, label: str = "Task") -> Any:
        raise TaskFailedError(self.error)


class PollTimedOut(PollOutcome):
    outcome: Literal["timed_out"] = "timed_out"

    def unwrap(self, label: str = "Task") -> Any:
        raise PollTimeoutError(f"{label} timed out. Please try again.")


class PollErrored(PollOutcome):
    outcome: Literal["errored"] = "errored"
    error: str

    def unwrap(self, label: str = "Task") -> Any:
        raise PollError(f"Failed to retrieve job status: {self.error}")


class PollCancelled(PollOutcome):
    outcome: Literal["cancelled"] = "cancelled"

    def unwrap(self, label: str = "Task") -> Any:
        raise PollCancelledError(f"{label} was cancelled.")


AnyPollOutcome = Annotated[
    PollCompleted | PollFailed | PollTimedOut | PollErrored | PollCancelled,
    Field(discriminator="outcome"),
]

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.pv_review.domain.models.task_state import TaskState


class TaskNotFoundError(Exception):
    """Raised when a task identifier does not exist in the task store."""
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class TaskAccessDeniedError(Exception):
    """Raised when a user attempts to access a task they do not own."""

    def __init__(self, task_id: str, user_id: str) -> None:
        super().__init__(f"User '{user_id}' has no access to task '{task_id}'.")
        self.task_id = task_id
        self.user_id = user_id


class ProjectNotFoundError(Exception):
    def __init__(self, project_id: str) -> None:
        super().__init__("Project not found")
        self.project_id = project_id


class ProjectAccessDeniedError(Exception):
    """Raised when a user submits work for a project they do not own."""

    def __init__(self, project_id: str, user_id: str) -> None:
        super().__init__("Forbidden")
        self.project_id = project_id
        self.user_id = user_id


class InvalidTaskTransitionError(Exception):
    """Raised when a write targets a task that already reached a terminal state."""

    def __init__(self, task_id: str, current: "TaskState", target: "TaskState") -> None:
        super().__init__(
            f"Task '{task_id}' is {current.value} and cannot move to {target.value}."
        )
        self.task_id = task_id
        self.current = current
        self.target = target


class AuthenticationError(Exception):
    """Raised when a credential is missing or rejected by the identity provider."""


class GatewayError(Exception):
    """Raised when a remote call (function, AI gateway, storage) fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GatewayRateLimitError(GatewayError):
    def __init__(self) -> None:
        super().__init__("Rate limit exceeded. Please try again later.", status_code=429)


class GatewayPaymentRequiredError(GatewayError):
    def __init__(self) -> None:
        super().__init__("AI credits exhausted. Please add credits to continue.", status_code=402)


class MalformedResultError(Exception):
    """Raised when a task result cannot be decoded at all."""


class UploadError(Exception):
    """Raised when a file upload failed after its single retry."""

    def __init__(self, file_name: str, reason: str) -> None:
        super().__init__(f"Failed to upload {file_name}: {reason}")
        self.file_name = file_name
        self.reason = reason


class ReviewWorkflowError(Exception):
    """Base class for errors surfaced to the user as a short message."""


class SubmissionRejectedError(ReviewWorkflowError):
    """Raised when the remote service refused a submission."""


class PollError(ReviewWorkflowError):
    """Raised when the task store could not be read while polling."""


class TaskFailedError(ReviewWorkflowError):
    """Raised when the worker marked the task as failed."""


class PollTimeoutError(ReviewWorkflowError):
    """Raised when the task did not reach a terminal state in time."""


class PollCancelledError(ReviewWorkflowError):
    """Raised when the caller cancelled the poll before a terminal state."""

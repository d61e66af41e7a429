from dataclasses import dataclass

from src.pv_review.domain.models.task_kind import TaskKind
from src.setup.celery_config import get_celery_settings


@dataclass(frozen=True)
class TaskRoute:
    kind: TaskKind
    celery_task: str
    queue: str | None = None


class TaskRegistry:
    """Registry mapping deferred task kinds to Celery routing info."""

    def __init__(self, queue: str | None = None) -> None:
        queue = queue or get_celery_settings().REVIEW_QUEUE
        self._registry: dict[TaskKind, TaskRoute] = {
            TaskKind.COMPLIANCE: TaskRoute(
                kind=TaskKind.COMPLIANCE,
                celery_task="analyze_compliance",
                queue=queue,
            ),
            TaskKind.DELIVERABLES: TaskRoute(
                kind=TaskKind.DELIVERABLES,
                celery_task="generate_deliverables",
                queue=queue,
            ),
        }

    def route_for_kind(self, kind: TaskKind) -> TaskRoute:
        try:
            return self._registry[kind]
        except KeyError as exc:
            raise ValueError(f"No task route registered for task kind {kind.value!r}") from exc

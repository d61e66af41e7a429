from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum

import inject

from src.pv_review.domain.models.outcomes import (
    PollCancelled,
    PollCompleted,
    PollErrored,
    PollFailed,
    PollOutcome,
    PollTimedOut,
)
from src.pv_review.domain.models.task_state import TaskState
from src.pv_review.domain.repositories import TaskStoreRepository
from src.setup.poller_config import PollerSettings, get_poller_settings

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]
ProgressObserver = Callable[[int], None]


class PollerPhase(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    ERRORED = "errored"
    CANCELLED = "cancelled"


class TaskPoller:
    """
    Reads a task from the task store on a fixed interval until it is terminal.

    The poller never writes to the store, holds no lock and keeps no state
    beyond its own loop, so a new poller can resume watching the same task at
    any time. Reads are strictly sequential and the sleep between them is the
    only suspension point. Cancellation is cooperative and checked between
    iterations.
    """

    def __init__(
        self,
        store: TaskStoreRepository | None = None,
        *,
        settings: PollerSettings | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = time.monotonic,
    ) -> None:
        self._store = store or inject.instance(TaskStoreRepository)
        self._settings = settings or get_poller_settings()
        self._sleep = sleep
        self._clock = clock
        self._phase = PollerPhase.IDLE
        self._cancelled = False

    @property
    def phase(self) -> PollerPhase:
        return self._phase

    def cancel(self) -> None:
        """Stop before the next read; the current read, if any, is not interrupted."""
        self._cancelled = True

    async def poll(
        self,
        task_id: str,
        *,
        interval_ms: int | None = None,
        max_attempts: int | None = None,
        timeout_seconds: float | None = None,
        on_progress: ProgressObserver | None = None,
    ) -> PollOutcome:
        if self._phase is not PollerPhase.IDLE:
            raise RuntimeError("A poller instance runs a single poll")

        interval_ms = interval_ms if interval_ms is not None else self._settings.POLL_INTERVAL_MS
        max_attempts = max_attempts if max_attempts is not None else self._settings.POLL_MAX_ATTEMPTS
        if timeout_seconds is None:
            timeout_seconds = self._settings.POLL_TIMEOUT_SECONDS
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        if max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")
        deadline = self._clock() + timeout_seconds if timeout_seconds is not None else None

        self._phase = PollerPhase.POLLING
        attempts = 0
        last_progress: int | None = None

        while attempts < max_attempts:
            if self._cancelled:
                return self._finish(PollCancelled(attempts=attempts), task_id)

            attempts += 1
            try:
                status = await self._store.read_task(task_id)
            except Exception as exc:
                logger.error(
                    "Error polling task status",
                    extra={"task_id": task_id, "attempts": attempts, "error": str(exc)},
                )
                return self._finish(PollErrored(attempts=attempts, error=str(exc)), task_id)

            if status.state is TaskState.COMPLETED:
                return self._finish(PollCompleted(attempts=attempts, result=status.result), task_id)
            if status.state is TaskState.FAILED:
                error = status.error or "Task failed with unknown error"
                return self._finish(PollFailed(attempts=attempts, error=error), task_id)

            if last_progress is None or status.progress > last_progress:
                last_progress = status.progress
                if on_progress is not None:
                    on_progress(status.progress)
            elif status.progress < last_progress:
                logger.warning(
                    "Ignoring progress regression",
                    extra={"task_id": task_id, "progress": status.progress, "last": last_progress},
                )

            await self._sleep(interval_ms / 1000)

            if deadline is not None and self._clock() >= deadline:
                break

        return self._finish(PollTimedOut(attempts=attempts), task_id)

    def _finish(self, outcome: PollOutcome, task_id: str) -> PollOutcome:
        self._phase = _PHASE_BY_OUTCOME[type(outcome)]
        logger.info(
            "Task poll finished",
            extra={"task_id": task_id, "outcome": self._phase.value, "attempts": outcome.attempts},
        )
        return outcome


_PHASE_BY_OUTCOME: dict[type[PollOutcome], PollerPhase] = {
    PollCompleted: PollerPhase.COMPLETED,
    PollFailed: PollerPhase.FAILED,
    PollTimedOut: PollerPhase.TIMED_OUT,
    PollErrored: PollerPhase.ERRORED,
    PollCancelled: PollerPhase.CANCELLED,
}

from __future__ import annotations

import logging
from typing import Any

import inject

from src.pv_review.domain.exceptions import GatewayError
from src.pv_review.domain.models.outcomes import Deferred, Immediate, Rejected, SubmissionOutcome
from src.pv_review.domain.models.payloads import TaskPayload
from src.pv_review.domain.models.task_kind import TaskKind
from src.pv_review.domain.repositories import FunctionGatewayRepository

logger = logging.getLogger(__name__)


class TaskSubmitter:
    """Forwards work requests to the remote functions. Issues exactly one call, never retries."""

    def __init__(self, functions: FunctionGatewayRepository | None = None) -> None:
        self._functions = functions or inject.instance(FunctionGatewayRepository)

    async def submit(
        self,
        kind: TaskKind,
        payload: TaskPayload | dict[str, Any],
        credential: str | None,
    ) -> SubmissionOutcome:
        if not credential:
            return Rejected(reason="You must be logged in to submit work.")

        body = (
            payload.model_dump(mode="json", by_alias=True)
            if isinstance(payload, TaskPayload)
            else dict(payload)
        )
        try:
            response = await self._functions.invoke(kind.function_name, body, credential)
        except GatewayError as exc:
            logger.warning(
                "Task submission failed",
                extra={"kind": kind.value, "error": str(exc)},
            )
            return Rejected(reason=str(exc))

        outcome = self._to_outcome(response)
        logger.info("Task submitted", extra={"kind": kind.value, "outcome": outcome.outcome})
        return outcome

    @staticmethod
    def _to_outcome(response: dict[str, Any]) -> SubmissionOutcome:
        error = response.get("errorMessage") or response.get("error")
        if error:
            return Rejected(reason=str(error))
        task_id = response.get("taskId") or response.get("jobId")
        if task_id:
            return Deferred(task_id=str(task_id))
        if "immediateResult" in response:
            return Immediate(result=response["immediateResult"])
        return Immediate(result=response)

from __future__ import annotations

import httpx
from pydantic import ValidationError

from src.pv_review.domain.exceptions import GatewayError, TaskNotFoundError
from src.pv_review.domain.models.task_state import TaskState
from src.pv_review.domain.models.task_status import TaskStatus
from src.pv_review.domain.repositories import TaskStoreRepository
from src.pv_review.infrastructure.gateway.client import HttpGateway, bearer, json_body
from src.setup.gateway_config import GatewaySettings, get_gateway_settings


class HttpTaskStore(HttpGateway, TaskStoreRepository):
    """Client-side view of the task store through ``GET /tasks/{task_id}``."""

    def __init__(
        self,
        credential: str,
        settings: GatewaySettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_gateway_settings()
        super().__init__(
            settings.FUNCTIONS_BASE_URL,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
            headers=bearer(credential),
            transport=transport,
        )

    async def read_task(self, task_id: str) -> TaskStatus:
        response = await self._send("GET", f"/tasks/{task_id}")
        if response.status_code == 404:
            raise TaskNotFoundError(task_id)
        body = json_body(response)
        if not response.is_success or body is None:
            message = (body or {}).get("errorMessage") or f"status {response.status_code}"
            raise GatewayError(message, response.status_code)
        try:
            return TaskStatus(
                state=TaskState(body.get("status")),
                progress=body.get("progress") or 0,
                result=body.get("result"),
                error=body.get("errorMessage"),
            )
        except (ValueError, ValidationError) as exc:
            raise GatewayError(f"Malformed task record for {task_id}") from exc

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.pv_review.domain.exceptions import GatewayError
from src.pv_review.domain.repositories import FunctionGatewayRepository
from src.pv_review.infrastructure.gateway.client import HttpGateway, bearer, json_body
from src.setup.gateway_config import GatewaySettings, get_gateway_settings

logger = logging.getLogger(__name__)


class HttpFunctionGateway(HttpGateway, FunctionGatewayRepository):
    """Invokes ``POST /functions/{name}`` on the review service."""

    def __init__(
        self,
        settings: GatewaySettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_gateway_settings()
        super().__init__(
            settings.FUNCTIONS_BASE_URL,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def invoke(
        self, function_name: str, body: dict[str, Any], credential: str
    ) -> dict[str, Any]:
        response = await self._send(
            "POST", f"/functions/{function_name}", json=body, headers=bearer(credential)
        )
        payload = json_body(response)
        if payload is None:
            raise GatewayError(
                f"Invalid response from {function_name} ({response.status_code})",
                response.status_code,
            )
        # Error bodies are returned as-is; the submitter turns them into a rejection.
        if not response.is_success and not (payload.get("errorMessage") or payload.get("error")):
            raise GatewayError(
                f"{function_name} failed with status {response.status_code}",
                response.status_code,
            )
        return payload

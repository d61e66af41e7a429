from __future__ import annotations

import httpx

from src.pv_review.domain.exceptions import AuthenticationError, GatewayError
from src.pv_review.domain.models.identity import UserIdentity
from src.pv_review.domain.repositories import IdentityRepository
from src.pv_review.infrastructure.gateway.client import HttpGateway, bearer, json_body
from src.setup.gateway_config import GatewaySettings, get_gateway_settings


class HttpIdentityProvider(HttpGateway, IdentityRepository):
    """Resolves bearer tokens with the hosted auth API."""

    def __init__(
        self,
        settings: GatewaySettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_gateway_settings()
        headers = {"apikey": settings.BACKEND_API_KEY} if settings.BACKEND_API_KEY else {}
        super().__init__(
            settings.BACKEND_URL,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
            headers=headers,
            transport=transport,
        )

    async def get_user(self, credential: str) -> UserIdentity:
        response = await self._send("GET", "/auth/v1/user", headers=bearer(credential))
        if response.status_code in (401, 403):
            raise AuthenticationError("Unauthorized")
        body = json_body(response)
        if not response.is_success or body is None:
            raise GatewayError(f"Identity lookup failed ({response.status_code})", response.status_code)
        if not body.get("id"):
            raise AuthenticationError("Unauthorized")
        return UserIdentity(id=str(body["id"]), email=body.get("email"))

from __future__ import annotations

import httpx

from src.pv_review.domain.exceptions import GatewayError
from src.pv_review.domain.repositories import ObjectStorageRepository
from src.pv_review.infrastructure.gateway.client import HttpGateway, bearer, json_body
from src.setup.gateway_config import GatewaySettings, get_gateway_settings


class HttpObjectStorage(HttpGateway, ObjectStorageRepository):
    """Object storage REST API; uploads run with the caller's own token."""

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

    async def upload(self, bucket: str, object_path: str, content: bytes, credential: str) -> None:
        response = await self._send(
            "POST",
            f"/storage/v1/object/{bucket}/{object_path}",
            headers={**bearer(credential), "x-upsert": "false"},
            data={"cacheControl": "3600"},
            files={"file": (object_path.rsplit("/", 1)[-1], content)},
        )
        if not response.is_success:
            body = json_body(response) or {}
            message = body.get("message") or body.get("error") or f"Upload failed ({response.status_code})"
            raise GatewayError(str(message), response.status_code)

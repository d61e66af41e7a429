"""Shared httpx plumbing for the hosted collaborators."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.pv_review.domain.exceptions import GatewayError

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0


class HttpGateway:
    """
    Base for the HTTP clients. A fresh ``httpx.AsyncClient`` is opened per call
    so a client never outlives the event loop it was created on (the worker runs
    each task in its own loop).
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout_seconds: float,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_seconds, connect=DEFAULT_CONNECT_TIMEOUT_SECONDS)
        self._headers = dict(headers or {})
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("Timeout calling gateway", extra={"url": url})
            raise GatewayError(f"Request to {url} timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("HTTP error calling gateway", extra={"url": url, "error": str(exc)})
            raise GatewayError(str(exc) or f"Request to {url} failed") from exc


def bearer(credential: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {credential}"}


def json_body(response: httpx.Response) -> dict[str, Any] | None:
    """Decoded JSON object of ``response``, or ``None`` when it carries none."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None

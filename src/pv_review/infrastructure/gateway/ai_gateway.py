from __future__ import annotations

import logging
from typing import Any

import httpx

from src.pv_review.domain.exceptions import (
    GatewayError,
    GatewayPaymentRequiredError,
    GatewayRateLimitError,
)
from src.pv_review.domain.models.chat import ChatCompletion, ChatMessage
from src.pv_review.domain.repositories import ChatCompletionRepository
from src.pv_review.infrastructure.gateway.client import HttpGateway, bearer, json_body
from src.setup.gateway_config import GatewaySettings, get_gateway_settings

logger = logging.getLogger(__name__)


class AiGatewayClient(HttpGateway, ChatCompletionRepository):
    """OpenAI-compatible chat-completions client for the AI gateway."""

    def __init__(
        self,
        settings: GatewaySettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_gateway_settings()
        api_key = settings.AI_GATEWAY_API_KEY
        super().__init__(
            timeout_seconds=settings.AI_TIMEOUT_SECONDS,
            headers=bearer(api_key) if api_key else None,
            transport=transport,
        )
        self._url = settings.AI_GATEWAY_URL
        self._model = settings.AI_MODEL
        self._temperature = settings.AI_TEMPERATURE
        self._configured = bool(api_key)

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: dict[str, Any] | None = None,
        response_format: dict[str, Any] | None = None,
        max_completion_tokens: int = 8000,
    ) -> ChatCompletion:
        if not self._configured:
            raise GatewayError("AI service not configured")
        body: dict[str, Any] = {
            "model": self._model,
            "messages": [message.model_dump() for message in messages],
            "temperature": self._temperature,
            "max_completion_tokens": max_completion_tokens,
        }
        if tools:
            body["tools"] = tools
        if tool_choice:
            body["tool_choice"] = tool_choice
        if response_format:
            body["response_format"] = response_format

        response = await self._send("POST", self._url, json=body)
        if response.status_code == 429:
            raise GatewayRateLimitError()
        if response.status_code == 402:
            raise GatewayPaymentRequiredError()
        if not response.is_success:
            logger.error(
                "AI gateway error",
                extra={"status": response.status_code, "body": response.text[:500]},
            )
            raise GatewayError(f"AI gateway error: {response.status_code}", response.status_code)

        payload = json_body(response)
        if payload is None:
            raise GatewayError("Invalid AI response format", response.status_code)
        return self._to_completion(payload)

    def _to_completion(self, payload: dict[str, Any]) -> ChatCompletion:
        choices = payload.get("choices") or [{}]
        message = choices[0].get("message") or {}
        tool_calls = message.get("tool_calls") or [{}]
        function = tool_calls[0].get("function") or {}
        usage = payload.get("usage") or {}
        return ChatCompletion(
            model=payload.get("model") or self._model,
            content=message.get("content"),
            tool_arguments=function.get("arguments"),
            total_tokens=usage.get("total_tokens") or 0,
        )

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from campaign_pipeline.config import settings
from campaign_pipeline.errors import (
    GatewayConfigError,
    GenerationFailedError,
    PipelineError,
    QuotaExhaustedError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)


def classify_status_error(status_code: int, *, operation: str = "AI generation") -> PipelineError:
    if status_code == 429:
        return RateLimitedError()
    if status_code == 402:
        return QuotaExhaustedError()
    return GenerationFailedError(f"{operation} failed: {status_code}")


class AIGatewayClient:
    """
    Thin async wrapper around the OpenAI-compatible chat completions gateway.
    Upstream HTTP failures are translated into pipeline errors; retries are left to callers.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url or settings.AI_GATEWAY_BASE_URL
        self._timeout = timeout or settings.AI_REQUEST_TIMEOUT_SECONDS
        self._http_client = http_client
        self._openai_client: Optional[AsyncOpenAI] = None

    def _client(self) -> AsyncOpenAI:
        if self._openai_client is not None:
            return self._openai_client
        api_key = self._api_key or settings.AI_GATEWAY_API_KEY
        if not api_key:
            raise GatewayConfigError()
        client_kwargs: dict[str, Any] = {
            "api_key": api_key,
            "base_url": self._base_url,
            "timeout": float(self._timeout),
            "max_retries": 0,
        }
        if self._http_client is not None:
            client_kwargs["http_client"] = self._http_client
        self._openai_client = AsyncOpenAI(**client_kwargs)
        return self._openai_client

    async def chat_completion(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        tools: Optional[list[dict[str, Any]]] = None,
        tool_choice: Optional[dict[str, Any]] = None,
        modalities: Optional[list[str]] = None,
        operation: str = "AI generation",
    ) -> dict[str, Any]:
        """Return the first choice's message as a plain dict."""
        client = self._client()
        request_kwargs: dict[str, Any] = {"model": model, "messages": messages}
        if tools:
            request_kwargs["tools"] = tools
        if tool_choice:
            request_kwargs["tool_choice"] = tool_choice
        if modalities:
            # Image output is a gateway extension, not part of the OpenAI schema.
            request_kwargs["extra_body"] = {"modalities": modalities}

        try:
            completion = await client.chat.completions.create(**request_kwargs)
        except APIStatusError as exc:
            logger.error(
                "AI gateway returned an error status",
                extra={"model": model, "status_code": exc.status_code, "operation": operation},
            )
            raise classify_status_error(exc.status_code, operation=operation) from exc
        except APIConnectionError as exc:
            logger.exception("AI gateway request failed", extra={"model": model, "operation": operation})
            raise GenerationFailedError(f"{operation} failed: {exc}") from exc

        payload = completion.model_dump()
        choices = payload.get("choices") or []
        if not choices:
            return {}
        message = choices[0].get("message")
        return message if isinstance(message, dict) else {}

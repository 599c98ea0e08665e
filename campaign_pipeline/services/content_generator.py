from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from campaign_pipeline.config import settings
from campaign_pipeline.errors import EmptyResponseError, RateLimitedError
from campaign_pipeline.llm.client import AIGatewayClient
from campaign_pipeline.schemas.generation import SeoMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")

META_TITLE_MAX_CHARS = 60
META_DESCRIPTION_MAX_CHARS = 160

SEO_METADATA_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "generate_seo_metadata",
        "description": "Generate SEO metadata for a landing page",
        "parameters": {
            "type": "object",
            "properties": {
                "meta_title": {
                    "type": "string",
                    "description": "SEO meta title, max 60 characters, include main keyword",
                },
                "meta_description": {
                    "type": "string",
                    "description": "SEO meta description, max 160 characters, compelling and action-oriented",
                },
            },
            "required": ["meta_title", "meta_description"],
            "additionalProperties": False,
        },
    },
}


@dataclass
class GenerationContext:
    business_name: str
    business_type: str
    tone_of_voice: Optional[str] = None
    data_values: Mapping[str, str] = field(default_factory=dict)


def _data_context(data_values: Mapping[str, str]) -> str:
    return "\n".join(f"- {key}: {value}" for key, value in data_values.items())


def build_copywriter_prompt(context: GenerationContext) -> str:
    tone = context.tone_of_voice or "Professional, friendly, and trustworthy"
    return (
        f"You are an expert SEO copywriter creating content for {context.business_name}, "
        f"a {context.business_type} business.\n\n"
        f"Tone of voice: {tone}\n\n"
        f"Business data:\n{_data_context(context.data_values)}\n\n"
        "Guidelines:\n"
        "- Write compelling, SEO-optimized content\n"
        "- Be specific and use the provided data values naturally\n"
        "- Keep content concise but impactful\n"
        "- Do not use placeholder text or brackets like {{variable}}\n"
        "- Write in the same language as the data values provided\n"
        "- Do NOT include any markdown formatting, just plain text"
    )


def build_seo_prompt(context: GenerationContext) -> str:
    return (
        "You are an SEO expert. Generate metadata for a landing page.\n\n"
        f"Business: {context.business_name}\n"
        f"Type: {context.business_type}\n"
        f"Page data:\n{_data_context(context.data_values)}"
    )


def fallback_seo_metadata(page_title: str, business_name: str) -> SeoMetadata:
    description = f"Learn more about {page_title}. {business_name} offers the best solutions."
    return SeoMetadata(
        meta_title=page_title[:META_TITLE_MAX_CHARS],
        meta_description=description[:META_DESCRIPTION_MAX_CHARS],
    )


def _tool_call_arguments(message: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    tool_calls = message.get("tool_calls") or []
    if not tool_calls:
        return None
    function = (tool_calls[0] or {}).get("function") or {}
    raw_arguments = function.get("arguments")
    if not raw_arguments:
        return None
    if isinstance(raw_arguments, dict):
        return raw_arguments
    try:
        parsed = json.loads(raw_arguments)
    except (TypeError, json.JSONDecodeError):
        logger.warning("SEO tool call returned invalid JSON arguments")
        return None
    return parsed if isinstance(parsed, dict) else None


class ContentGenerator:
    """Text, image and SEO metadata generation against the AI gateway."""

    def __init__(
        self,
        client: Optional[AIGatewayClient] = None,
        *,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        backoff_max_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client or AIGatewayClient()
        self.text_model = text_model or settings.AI_TEXT_MODEL
        self.image_model = image_model or settings.AI_IMAGE_MODEL
        self.max_attempts = max_attempts or settings.GENERATION_RATE_LIMIT_MAX_ATTEMPTS
        self.backoff_seconds = (
            settings.GENERATION_RATE_LIMIT_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self.backoff_max_seconds = (
            settings.GENERATION_RATE_LIMIT_BACKOFF_MAX_SECONDS
            if backoff_max_seconds is None
            else backoff_max_seconds
        )
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        return min(self.backoff_max_seconds, self.backoff_seconds * (2**attempt))

    async def _with_rate_limit_retry(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        # Only throttling is retried; quota and other upstream failures surface immediately.
        for attempt in range(self.max_attempts):
            try:
                return await call()
            except RateLimitedError:
                if attempt + 1 >= self.max_attempts:
                    raise
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "AI gateway rate limited; backing off",
                    extra={"operation": operation, "attempt": attempt + 1, "delay_seconds": delay},
                )
                await self._sleep(delay)
        raise RateLimitedError()

    async def generate_text(self, prompt: str, context: GenerationContext) -> str:
        messages = [
            {"role": "system", "content": build_copywriter_prompt(context)},
            {"role": "user", "content": prompt},
        ]

        async def _call() -> dict[str, Any]:
            return await self.client.chat_completion(
                model=self.text_model,
                messages=messages,
                operation="AI generation",
            )

        message = await self._with_rate_limit_retry("generate_text", _call)
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise EmptyResponseError()
        return content.strip()

    async def generate_seo_metadata(self, page_title: str, context: GenerationContext) -> SeoMetadata:
        messages = [
            {"role": "system", "content": build_seo_prompt(context)},
            {"role": "user", "content": f'Generate SEO metadata for a page titled "{page_title}".'},
        ]

        async def _call() -> dict[str, Any]:
            return await self.client.chat_completion(
                model=self.text_model,
                messages=messages,
                tools=[SEO_METADATA_TOOL],
                tool_choice={"type": "function", "function": {"name": "generate_seo_metadata"}},
                operation="SEO generation",
            )

        message = await self._with_rate_limit_retry("generate_seo_metadata", _call)
        arguments = _tool_call_arguments(message)
        fallback = fallback_seo_metadata(page_title, context.business_name)
        if arguments is None:
            logger.info("SEO metadata tool call missing; using local fallback", extra={"page_title": page_title})
            return fallback

        meta_title = str(arguments.get("meta_title") or "").strip() or fallback.meta_title
        meta_description = str(arguments.get("meta_description") or "").strip() or fallback.meta_description
        return SeoMetadata(
            meta_title=meta_title[:META_TITLE_MAX_CHARS],
            meta_description=meta_description[:META_DESCRIPTION_MAX_CHARS],
        )

    async def generate_image(self, prompt: str) -> str:
        async def _call() -> dict[str, Any]:
            return await self.client.chat_completion(
                model=self.image_model,
                messages=[{"role": "user", "content": prompt}],
                modalities=["image", "text"],
                operation="Image generation",
            )

        message = await self._with_rate_limit_retry("generate_image", _call)
        images = message.get("images") or []
        image_url = None
        if images and isinstance(images[0], dict):
            image_url = (images[0].get("image_url") or {}).get("url")
        if not image_url:
            logger.info("Image generation returned no image", extra={"prompt": prompt[:100]})
            return f"[Image: {prompt[:50]}...]"
        return image_url

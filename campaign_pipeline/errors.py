from __future__ import annotations


class PipelineError(RuntimeError):
    """Base error for the content pipeline; carries the HTTP status it maps to."""

    status_code: int = 500
    default_message: str = "Content generation failed"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message or self.default_message)
        if status_code is not None:
            self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


class PageNotFoundError(PipelineError):
    status_code = 404
    default_message = "Page not found"


class CampaignNotFoundError(PipelineError):
    status_code = 404
    default_message = "Campaign not found"


class RateLimitedError(PipelineError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."


class QuotaExhaustedError(PipelineError):
    status_code = 402
    default_message = "AI credits exhausted. Please add credits to continue."


class GenerationFailedError(PipelineError):
    status_code = 500
    default_message = "AI generation failed"


class EmptyResponseError(GenerationFailedError):
    default_message = "No content generated from AI"


class GatewayConfigError(PipelineError):
    status_code = 500
    default_message = "AI_GATEWAY_API_KEY is not configured"


class PersistenceFailedError(PipelineError):
    status_code = 500
    default_message = "Failed to save generated content"


class TemplateFieldError(PipelineError):
    status_code = 422

    def __init__(self, message: str, *, section_id: str | None = None, field: str | None = None) -> None:
        location = ".".join(part for part in (section_id, field) if part)
        super().__init__(f"{location}: {message}" if location else message)
        self.section_id = section_id
        self.field = field

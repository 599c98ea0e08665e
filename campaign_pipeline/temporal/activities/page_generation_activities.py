from __future__ import annotations

import logging
from typing import Any, Dict

from temporalio import activity
from temporalio.exceptions import ApplicationError

from campaign_pipeline.db.base import session_scope
from campaign_pipeline.db.repositories import CampaignPagesRepository, CampaignsRepository
from campaign_pipeline.errors import (
    CampaignNotFoundError,
    GatewayConfigError,
    PageNotFoundError,
    PipelineError,
    QuotaExhaustedError,
    RateLimitedError,
    TemplateFieldError,
)
from campaign_pipeline.schemas.generation import PageGenerateRequest
from campaign_pipeline.services.page_generation import generate_campaign_page

logger = logging.getLogger(__name__)

# Failures that another attempt cannot fix.
NON_RETRYABLE_ERRORS = (
    CampaignNotFoundError,
    PageNotFoundError,
    QuotaExhaustedError,
    TemplateFieldError,
    GatewayConfigError,
)


def _application_error(exc: PipelineError) -> ApplicationError:
    return ApplicationError(
        str(exc),
        {"status_code": exc.status_code},
        type=type(exc).__name__,
        non_retryable=isinstance(exc, NON_RETRYABLE_ERRORS),
    )


@activity.defn
def list_campaign_pages_activity(params: Dict[str, Any]) -> Dict[str, Any]:
    campaign_id = params["campaign_id"]
    with session_scope() as session:
        campaign = CampaignsRepository(session).get(campaign_id)
        if not campaign:
            raise ApplicationError(
                f"Campaign not found: {campaign_id}",
                type=CampaignNotFoundError.__name__,
                non_retryable=True,
            )
        pages = CampaignPagesRepository(session).list(campaign_id=campaign_id)
        return {"page_ids": [page.id for page in pages]}


@activity.defn
async def generate_campaign_page_activity(params: Dict[str, Any]) -> Dict[str, Any]:
    campaign_id = params["campaign_id"]
    page_id = params["page_id"]
    options = PageGenerateRequest(
        regenerate_metadata=bool(params.get("regenerate_metadata", False)),
        tone_of_voice=params.get("tone_of_voice"),
        # Later attempts pick up sections finished by earlier ones.
        resume=activity.info().attempt > 1 or bool(params.get("resume", False)),
    )
    with session_scope() as session:
        try:
            response = await generate_campaign_page(
                session,
                campaign_id=campaign_id,
                page_id=page_id,
                options=options,
            )
        except PipelineError as exc:
            logger.warning(
                "Campaign page generation attempt failed",
                extra={
                    "campaign_id": campaign_id,
                    "page_id": page_id,
                    "attempt": activity.info().attempt,
                    "retryable": not isinstance(exc, NON_RETRYABLE_ERRORS),
                    "rate_limited": isinstance(exc, RateLimitedError),
                },
            )
            raise _application_error(exc) from exc

    return {
        "page_id": page_id,
        "status": "succeeded",
        "section_count": len(response.sections),
        "meta_title": response.meta_title,
    }

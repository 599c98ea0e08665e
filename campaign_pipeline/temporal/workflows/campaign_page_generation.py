from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from campaign_pipeline.temporal.activities.page_generation_activities import (
        generate_campaign_page_activity,
        list_campaign_pages_activity,
    )

DEFAULT_PAGE_CONCURRENCY = 4

PAGE_GENERATION_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=5),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(minutes=2),
    maximum_attempts=5,
    non_retryable_error_types=[
        "CampaignNotFoundError",
        "PageNotFoundError",
        "QuotaExhaustedError",
        "TemplateFieldError",
        "GatewayConfigError",
    ],
)


@dataclass
class CampaignPagesGenerationInput:
    campaign_id: str
    page_ids: Optional[List[str]] = None
    regenerate_metadata: bool = False
    tone_of_voice: Optional[str] = None
    concurrency: Optional[int] = None


def _failure_message(exc: BaseException) -> str:
    cause = exc.cause if isinstance(exc, ActivityError) else None
    if isinstance(cause, ApplicationError):
        return cause.message
    return str(cause or exc)


@workflow.defn
class CampaignPagesGenerationWorkflow:
    @workflow.run
    async def run(self, input: CampaignPagesGenerationInput) -> Dict[str, Any]:
        if input.page_ids is not None:
            page_ids = list(input.page_ids)
        else:
            listing = await workflow.execute_activity(
                list_campaign_pages_activity,
                {"campaign_id": input.campaign_id},
                start_to_close_timeout=timedelta(minutes=1),
                schedule_to_close_timeout=timedelta(minutes=5),
                retry_policy=RetryPolicy(maximum_attempts=3),
            )
            page_ids = list(listing.get("page_ids") or [])

        if not page_ids:
            return {"page_count": 0, "succeeded": 0, "failed": 0, "errors": []}

        semaphore = workflow.asyncio.Semaphore(max(1, input.concurrency or DEFAULT_PAGE_CONCURRENCY))
        errors: List[Dict[str, Any]] = []
        succeeded: List[str] = []

        async def _run_for_page(page_id: str) -> None:
            async with semaphore:
                try:
                    await workflow.execute_activity(
                        generate_campaign_page_activity,
                        {
                            "campaign_id": input.campaign_id,
                            "page_id": page_id,
                            "regenerate_metadata": input.regenerate_metadata,
                            "tone_of_voice": input.tone_of_voice,
                        },
                        start_to_close_timeout=timedelta(minutes=10),
                        schedule_to_close_timeout=timedelta(minutes=45),
                        retry_policy=PAGE_GENERATION_RETRY_POLICY,
                    )
                except ActivityError as exc:
                    workflow.logger.warning("Page generation failed for %s", page_id)
                    errors.append({"page_id": page_id, "error": _failure_message(exc)})
                    return
                succeeded.append(page_id)

        tasks = [workflow.asyncio.create_task(_run_for_page(page_id)) for page_id in page_ids]
        await workflow.wait(tasks)

        return {
            "page_count": len(page_ids),
            "succeeded": len(succeeded),
            "failed": len(errors),
            "errors": errors,
        }

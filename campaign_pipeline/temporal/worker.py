from __future__ import annotations

import asyncio
import concurrent.futures
import logging

from temporalio.worker import Worker

from campaign_pipeline.config import settings
from campaign_pipeline.temporal.activities.page_generation_activities import (
    generate_campaign_page_activity,
    list_campaign_pages_activity,
)
from campaign_pipeline.temporal.client import get_temporal_client
from campaign_pipeline.temporal.workflows.campaign_page_generation import CampaignPagesGenerationWorkflow


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    client = await get_temporal_client()
    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as activity_executor:
        worker = Worker(
            client,
            task_queue=settings.TEMPORAL_TASK_QUEUE,
            workflows=[CampaignPagesGenerationWorkflow],
            activities=[
                list_campaign_pages_activity,
                generate_campaign_page_activity,
            ],
            activity_executor=activity_executor,
        )
        await worker.run()


if __name__ == "__main__":
    asyncio.run(main())

import asyncio
import logging

from temporalio.client import Client

from campaign_pipeline.config import settings

logger = logging.getLogger(__name__)

_client: Client | None = None
_connect_lock = asyncio.Lock()


async def get_temporal_client() -> Client:
    """Connect once per process; concurrent API requests share the connection."""
    global _client
    if _client is not None:
        return _client
    async with _connect_lock:
        if _client is None:
            logger.info(
                "Connecting to Temporal",
                extra={"address": settings.TEMPORAL_ADDRESS, "namespace": settings.TEMPORAL_NAMESPACE},
            )
            _client = await Client.connect(settings.TEMPORAL_ADDRESS, namespace=settings.TEMPORAL_NAMESPACE)
    return _client

"""
Job sync worker - periodically pulls every linked customer's ServiceM8 jobs.

Each pass is one bulk sync. A failing pass is logged and the loop carries on;
the next pass is the retry. Disabled unless SYNC_WORKER_ENABLED=true.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from portal.database import async_session_factory
from portal.integrations.provider_base import JobProvider
from portal.integrations.servicem8 import get_servicem8_client
from portal.schemas.sync_results import BulkSyncResult
from portal.services.job_sync import sync_all_customers
from portal.utils.logging import generate_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

_last_pass: dict = {"finished_at": None, "result": None}


def get_last_pass() -> dict:
    """Timestamp and summary of the most recent completed pass."""
    return dict(_last_pass)


async def run_sync_pass(provider: Optional[JobProvider] = None) -> BulkSyncResult:
    """Run one bulk sync in a fresh session."""
    set_correlation_id(generate_correlation_id())
    provider = provider or get_servicem8_client()
    async with async_session_factory() as db:
        result = await sync_all_customers(db, provider)
        await db.commit()

    _last_pass["finished_at"] = datetime.now(timezone.utc)
    _last_pass["result"] = result
    return result


async def run_job_sync(interval_seconds: Optional[int] = None):
    """Main loop: bulk sync every interval_seconds."""
    if interval_seconds is None:
        from portal.config import get_settings
        interval_seconds = get_settings().sync_interval_seconds

    logger.info("Job sync worker started (every %ds)", interval_seconds)

    while True:
        try:
            result = await run_sync_pass()
            if result.errors:
                logger.warning(
                    "Job sync pass finished with %d customer errors", len(result.errors)
                )
        except Exception as e:
            logger.error("Job sync pass error: %s", str(e))

        await asyncio.sleep(interval_seconds)

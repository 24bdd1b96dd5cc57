"""
Health check endpoints - used by load balancers, Docker healthcheck, and monitoring.

- GET /health       - basic liveness (always 200 if app running)
- GET /health/ready - readiness: database, plus ServiceM8 and sync worker status
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from portal.config import get_settings
from portal.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])

VERSION = "1.0.0"


@router.get("/health")
async def health_check():
    """Basic liveness check - returns 200 if the app is running."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
    }


@router.get("/health/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
):
    """
    Readiness is decided by the database alone.
    ServiceM8 is reported but never makes the app unready: bookings are
    served from local data while it is down.
    """
    settings = get_settings()
    database = await _check_database(db)

    return {
        "status": "ready" if database["healthy"] else "degraded",
        "checks": {"database": database},
        "servicem8": {
            "configured": settings.servicem8_configured,
            "sync_on_read": settings.sync_on_read,
            "sync_worker_enabled": settings.sync_worker_enabled,
        },
        "last_sync_pass": _last_sync_pass(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def _check_database(db: AsyncSession) -> dict:
    try:
        await db.execute(text("SELECT 1"))
        return {"healthy": True}
    except Exception as e:
        logger.error("Database health check failed: %s", str(e))
        return {"healthy": False, "error": str(e)}


def _last_sync_pass() -> dict | None:
    """Summary of the sync worker's most recent pass, None before the first one."""
    from portal.workers.job_sync import get_last_pass
    last = get_last_pass()
    if last["finished_at"] is None:
        return None
    result = last["result"]
    return {
        "finished_at": last["finished_at"].isoformat(),
        "customers_attempted": result.customers_attempted,
        "customers_synced": result.customers_synced,
        "bookings_created": result.total_created,
        "bookings_updated": result.total_updated,
        "errors": len(result.errors),
        "job_errors": len(result.job_errors),
    }

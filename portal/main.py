"""
Customer portal API - bookings kept in sync with ServiceM8.

Run with: uvicorn portal.main:app
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from portal.api.router import api_router
from portal.config import Settings, get_settings
from portal.database import dispose_engine
from portal.utils.logging import (
    configure_structured_logging,
    generate_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger("portal")

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each request with a correlation id (taken from the caller or generated)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        set_correlation_id(cid)
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = cid
        return response


def _init_sentry(settings: Settings) -> None:
    if not settings.sentry_dsn:
        return
    try:
        import sentry_sdk
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=0.1,
            environment=settings.app_env,
        )
        logger.info("Sentry initialized")
    except Exception as e:
        logger.warning("Sentry initialization failed: %s", str(e))


def _start_sync_worker(settings: Settings) -> Optional[asyncio.Task]:
    if not settings.sync_worker_enabled:
        logger.info("Job sync worker disabled (SYNC_WORKER_ENABLED=false)")
        return None
    from portal.workers.job_sync import run_job_sync
    logger.info("Starting job sync worker (every %ds)", settings.sync_interval_seconds)
    return asyncio.create_task(run_job_sync(settings.sync_interval_seconds))


async def _stop_sync_worker(task: Optional[asyncio.Task]) -> None:
    if task is None:
        return
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    logger.info("Job sync worker stopped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Portal starting up (env=%s)", settings.app_env)

    if not settings.servicem8_configured:
        logger.warning("SERVICEM8_API_KEY not set - bookings will not sync from ServiceM8")
    _init_sentry(settings)
    worker = _start_sync_worker(settings)

    yield

    logger.info("Portal shutting down")
    await _stop_sync_worker(worker)
    await dispose_engine()


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()
    configure_structured_logging(settings.log_level)

    application = FastAPI(
        title="Customer Portal",
        description="Customer bookings portal synced from ServiceM8",
        version="1.0.0",
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", CORRELATION_HEADER],
    )
    # Outermost, so CORS preflights carry a correlation id too
    application.add_middleware(CorrelationIdMiddleware)
    application.include_router(api_router)
    return application


app = create_app()

"""
Tests for portal/main.py - FastAPI app creation, middleware, lifespan, and CORS.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from portal.main import create_app, lifespan


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_mock_settings(**overrides):
    """Build a mock Settings object."""
    defaults = {
        "app_env": "test",
        "app_base_url": "http://localhost:8000",
        "cors_origins": ["http://localhost:8000", "https://portal.example.com"],
        "log_level": "WARNING",
        "servicem8_configured": True,
        "sentry_dsn": "",
        "sync_worker_enabled": False,
        "sync_interval_seconds": 900,
    }
    defaults.update(overrides)
    settings = MagicMock()
    for k, v in defaults.items():
        setattr(settings, k, v)
    return settings


def _app(**overrides) -> FastAPI:
    with (
        patch("portal.main.get_settings", return_value=_make_mock_settings(**overrides)),
        patch("portal.main.configure_structured_logging"),
    ):
        return create_app()


# ---------------------------------------------------------------------------
# create_app - application factory
# ---------------------------------------------------------------------------


class TestCreateApp:
    def test_returns_fastapi_instance(self):
        assert isinstance(_app(), FastAPI)

    def test_configures_structured_logging(self):
        """create_app calls configure_structured_logging with the config log level."""
        with (
            patch("portal.main.get_settings", return_value=_make_mock_settings(log_level="DEBUG")),
            patch("portal.main.configure_structured_logging") as mock_log,
        ):
            create_app()

        mock_log.assert_called_once_with("DEBUG")

    def test_includes_portal_routes(self):
        route_paths = set(_app().openapi()["paths"])
        assert "/health" in route_paths
        assert "/api/v1/customers/{customer_id}/bookings" in route_paths
        assert "/api/v1/customers/{customer_id}/bookings/{booking_id}/messages" in route_paths
        assert "/api/v1/servicem8/sync-all" in route_paths


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class TestCorrelationIdMiddleware:
    def test_generates_correlation_id_when_missing(self):
        client = TestClient(_app(), raise_server_exceptions=False)
        response = client.get("/health")

        assert len(response.headers["x-correlation-id"]) == 32  # UUID4 hex

    def test_uses_existing_correlation_id(self):
        client = TestClient(_app(), raise_server_exceptions=False)
        custom_cid = "abc123def456789012345678abcdef00"
        response = client.get("/health", headers={"X-Correlation-ID": custom_cid})

        assert response.headers["x-correlation-id"] == custom_cid


class TestCorsMiddleware:
    def test_allows_configured_origin(self):
        client = TestClient(_app(), raise_server_exceptions=False)
        response = client.options(
            "/health",
            headers={"Origin": "https://portal.example.com", "Access-Control-Request-Method": "GET"},
        )
        assert response.headers.get("access-control-allow-origin") == "https://portal.example.com"

    def test_rejects_unknown_origin(self):
        client = TestClient(_app(), raise_server_exceptions=False)
        response = client.options(
            "/health",
            headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "GET"},
        )
        assert "access-control-allow-origin" not in response.headers


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


class TestLifespan:
    async def test_worker_disabled(self):
        with (
            patch("portal.main.get_settings", return_value=_make_mock_settings()),
            patch("portal.workers.job_sync.run_job_sync") as mock_run,
            patch("portal.main.dispose_engine", new_callable=AsyncMock) as mock_dispose,
        ):
            async with lifespan(MagicMock()):
                mock_dispose.assert_not_awaited()

        mock_run.assert_not_called()
        mock_dispose.assert_awaited_once()

    async def test_worker_started_and_cancelled(self):
        started = asyncio.Event()
        cancelled = []

        async def fake_run(interval):
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(interval)
                raise

        with (
            patch("portal.main.get_settings", return_value=_make_mock_settings(
                sync_worker_enabled=True, sync_interval_seconds=30,
            )),
            patch("portal.workers.job_sync.run_job_sync", new=fake_run),
        ):
            async with lifespan(MagicMock()):
                await started.wait()

        assert cancelled == [30]

    async def test_sentry_initialized_when_dsn_set(self):
        with (
            patch("portal.main.get_settings", return_value=_make_mock_settings(sentry_dsn="https://k@sentry.example/1")),
            patch("sentry_sdk.init") as mock_init,
        ):
            async with lifespan(MagicMock()):
                pass

        assert mock_init.call_args.kwargs["dsn"] == "https://k@sentry.example/1"
        assert mock_init.call_args.kwargs["environment"] == "test"

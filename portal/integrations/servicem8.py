"""
ServiceM8 integration - REST API 1.0.

Auth: API key in the X-API-Key header.
Every call is a single request with the configured timeout (SERVICEM8_TIMEOUT_SECONDS).
Failures raise ServiceM8Error and are never retried here: the next sync pass is the retry.
"""
import logging
from typing import Any, Optional

import httpx

from portal.integrations.provider_base import JobProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.servicem8.com/api_1.0"
TIMEOUT = 10.0


class ServiceM8Error(RuntimeError):
    """Transport, timeout, or non-2xx failure talking to ServiceM8."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ServiceM8Client(JobProvider):
    """ServiceM8 API integration."""

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL, timeout: float = TIMEOUT):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "X-API-Key": api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        """Make an authenticated GET request to the ServiceM8 API."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}{path}",
                    headers=self._headers,
                    params=params,
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error(
                "ServiceM8 GET %s failed with HTTP %s", path, status_code,
                extra={"error_code": status_code},
            )
            raise ServiceM8Error(f"ServiceM8 returned HTTP {status_code} for {path}", status_code) from e
        except httpx.TimeoutException as e:
            logger.error("ServiceM8 GET %s timed out after %.1fs", path, self.timeout)
            raise ServiceM8Error(f"ServiceM8 request timed out: {path}") from e
        except httpx.HTTPError as e:
            logger.error("ServiceM8 GET %s failed: %s", path, str(e))
            raise ServiceM8Error(f"ServiceM8 request failed: {e}") from e

    async def get_jobs_by_company(self, company_uuid: str) -> list[dict]:
        """Get all jobs for a company (customer)."""
        data = await self._get("/job.json", params={"company_uuid": company_uuid})
        return list(data or [])

    async def get_job(self, job_uuid: str) -> dict:
        """Get a single job."""
        return await self._get(f"/job.json/{job_uuid}")

    async def get_job_attachments(self, job_uuid: str) -> list[dict]:
        """Get attachments related to a job."""
        data = await self._get("/attachment.json", params={"related_object_uuid": job_uuid})
        return list(data or [])

    async def get_company(self, company_uuid: str) -> dict:
        """Get company details."""
        return await self._get(f"/company.json/{company_uuid}")

    async def get_all_companies(self) -> list[dict]:
        """Get all companies."""
        data = await self._get("/company.json")
        return list(data or [])

    def attachment_file_url(self, attachment_uuid: str) -> str:
        return f"{self.base_url}/attachment.json/{attachment_uuid}/file"


def get_servicem8_client() -> ServiceM8Client:
    """Build a client from settings. Also used as a FastAPI dependency."""
    from portal.config import get_settings
    settings = get_settings()
    if not settings.servicem8_configured:
        logger.warning("SERVICEM8_API_KEY not set - ServiceM8 calls will be rejected")
    return ServiceM8Client(
        api_key=settings.servicem8_api_key,
        base_url=settings.servicem8_base_url,
        timeout=settings.servicem8_timeout_seconds,
    )

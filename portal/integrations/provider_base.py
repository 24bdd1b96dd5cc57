"""
Abstract job provider interface - the field-service API that bookings are synced from.
The sync services depend only on this interface, never on a concrete client.
"""
from abc import ABC, abstractmethod


class JobProvider(ABC):
    """Abstract base class for external job sources."""

    @abstractmethod
    async def get_jobs_by_company(self, company_uuid: str) -> list[dict]:
        """
        Fetch every job belonging to a company, in the provider's order.
        Returns: [{"uuid": str, "status": str, "job_address": str, ...}]
        """
        ...

    @abstractmethod
    async def get_job(self, job_uuid: str) -> dict:
        """Fetch a single job by its external id."""
        ...

    @abstractmethod
    async def get_job_attachments(self, job_uuid: str) -> list[dict]:
        """
        Fetch the attachments of a job.
        Returns: [{"uuid": str, "attachment_name": str, "file_type": str, ...}]
        """
        ...

    @abstractmethod
    async def get_company(self, company_uuid: str) -> dict:
        """Fetch a single company by its external id."""
        ...

    @abstractmethod
    async def get_all_companies(self) -> list[dict]:
        """Fetch every company visible to the account."""
        ...

    @abstractmethod
    def attachment_file_url(self, attachment_uuid: str) -> str:
        """Deterministic download URL for an attachment. Must not perform I/O."""
        ...

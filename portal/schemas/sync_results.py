"""
Sync result schemas - explicit per-job and per-customer outcomes.
The orchestrator aggregates these instead of relying on swallowed exceptions,
and the servicem8 API returns them as response bodies.
"""
from typing import Optional
from pydantic import BaseModel, Field


class JobReconcileResult(BaseModel):
    """Outcome of reconciling one remote job into one local booking."""
    job_uuid: Optional[str] = None
    booking_id: Optional[int] = None
    created: bool = Field(default=False, description="True when a new booking row was inserted")
    attachments_created: int = 0
    attachments_error: Optional[str] = Field(
        default=None, description="Set when attachments could not be synced this pass"
    )
    error: Optional[str] = Field(default=None, description="Set when the booking upsert itself failed")

    @property
    def success(self) -> bool:
        return self.error is None


class CustomerSyncError(BaseModel):
    customer_id: int
    error: str


class JobSyncError(BaseModel):
    customer_id: int
    job_uuid: Optional[str] = None
    error: str


class CustomerSyncResult(BaseModel):
    """Outcome of one single-customer sync pass."""
    customer_id: int
    linked: bool = True
    total_jobs: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    jobs: list[JobReconcileResult] = Field(default_factory=list)
    error: Optional[str] = Field(default=None, description="Set when the whole customer sync failed")

    @property
    def success(self) -> bool:
        return self.error is None

    def add(self, result: JobReconcileResult) -> None:
        self.jobs.append(result)
        if not result.success:
            self.failed += 1
        elif result.created:
            self.created += 1
        else:
            self.updated += 1


class BulkSyncResult(BaseModel):
    """Outcome of syncing every linked customer."""
    customers_attempted: int = 0
    customers_synced: int = 0
    total_created: int = 0
    total_updated: int = 0
    errors: list[CustomerSyncError] = Field(default_factory=list)
    job_errors: list[JobSyncError] = Field(default_factory=list)

    def add(self, result: CustomerSyncResult) -> None:
        self.customers_attempted += 1
        if not result.success:
            self.errors.append(CustomerSyncError(customer_id=result.customer_id, error=result.error))
            return
        self.customers_synced += 1
        self.total_created += result.created
        self.total_updated += result.updated
        for job in result.jobs:
            if not job.success:
                self.job_errors.append(
                    JobSyncError(customer_id=result.customer_id, job_uuid=job.job_uuid, error=job.error)
                )

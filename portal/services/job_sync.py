"""
Job sync orchestration - pulls ServiceM8 jobs into local bookings.

Failure containment:
- one job failing never stops the rest of that customer's jobs
- one customer failing never stops the rest of a bulk pass
Both are reported through the result schemas rather than swallowed.
Jobs are processed in the order ServiceM8 returns them.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.integrations.provider_base import JobProvider
from portal.models.booking import Booking
from portal.models.customer import Customer
from portal.schemas.sync_results import (
    BulkSyncResult,
    CustomerSyncResult,
    JobReconcileResult,
)
from portal.services.reconciler import reconcile_job
from portal.utils.logging import bind_log_fields

logger = logging.getLogger(__name__)


async def _reconcile_contained(
    db: AsyncSession, customer_id: int, job: dict, provider: JobProvider
) -> JobReconcileResult:
    """Reconcile one job inside its own SAVEPOINT, converting failure into a result."""
    job_uuid = job.get("uuid") if isinstance(job, dict) else None
    with bind_log_fields(job_uuid=job_uuid):
        try:
            async with db.begin_nested():
                return await reconcile_job(db, customer_id, job, provider)
        except Exception as e:
            logger.error("Job sync failed for job %s: %s", job_uuid, str(e))
            return JobReconcileResult(job_uuid=job_uuid, error=str(e) or type(e).__name__)


async def sync_customer_jobs(
    db: AsyncSession,
    customer_id: int,
    company_uuid: Optional[str],
    provider: JobProvider,
) -> CustomerSyncResult:
    """
    Sync every ServiceM8 job of one company into the customer's bookings.

    A customer without a company link is a no-op, not an error.
    Failure to fetch the job list propagates; per-job failures do not.
    """
    if not company_uuid:
        logger.info(
            "Customer %s not linked to ServiceM8, nothing to sync", customer_id,
            extra={"customer_id": customer_id},
        )
        return CustomerSyncResult(customer_id=customer_id, linked=False)

    with bind_log_fields(customer_id=customer_id, company_uuid=company_uuid):
        jobs = await provider.get_jobs_by_company(company_uuid)
        result = CustomerSyncResult(customer_id=customer_id, total_jobs=len(jobs))

        for job in jobs:
            result.add(await _reconcile_contained(db, customer_id, job, provider))

        logger.info(
            "Synced %d ServiceM8 jobs for customer %s (created=%d updated=%d failed=%d)",
            result.total_jobs, customer_id, result.created, result.updated, result.failed,
        )
    return result


async def sync_customer(db: AsyncSession, customer: Customer, provider: JobProvider) -> CustomerSyncResult:
    return await sync_customer_jobs(db, customer.id, customer.servicem8_company_uuid, provider)


async def get_linked_customers(db: AsyncSession) -> list[tuple[int, str]]:
    """(customer_id, company_uuid) for every customer with a non-empty ServiceM8 link."""
    result = await db.execute(
        select(Customer.id, Customer.servicem8_company_uuid)
        .where(
            Customer.servicem8_company_uuid.is_not(None),
            Customer.servicem8_company_uuid != "",
        )
        .order_by(Customer.id)
    )
    return [(row[0], row[1]) for row in result.all()]


async def _sync_customer_contained(
    db: AsyncSession, customer_id: int, company_uuid: str, provider: JobProvider
) -> CustomerSyncResult:
    """Sync and commit one customer; any failure rolls back that customer only."""
    try:
        result = await sync_customer_jobs(db, customer_id, company_uuid, provider)
        await db.commit()
        return result
    except Exception as e:
        await db.rollback()
        logger.error(
            "ServiceM8 sync failed for customer %s: %s", customer_id, str(e),
            extra={"customer_id": customer_id, "company_uuid": company_uuid},
        )
        return CustomerSyncResult(customer_id=customer_id, error=str(e) or type(e).__name__)


async def sync_all_customers(db: AsyncSession, provider: JobProvider) -> BulkSyncResult:
    """
    Sync every linked customer independently.
    Commits after each customer so a later failure cannot undo earlier work.
    """
    linked = await get_linked_customers(db)
    bulk = BulkSyncResult()

    if not linked:
        logger.info("No customers linked to ServiceM8")
        return bulk

    logger.info("Bulk ServiceM8 sync starting for %d customers", len(linked))
    for customer_id, company_uuid in linked:
        bulk.add(await _sync_customer_contained(db, customer_id, company_uuid, provider))

    logger.info(
        "Bulk ServiceM8 sync complete: %d/%d customers synced, %d created, %d updated, %d customer errors, %d job errors",
        bulk.customers_synced, bulk.customers_attempted, bulk.total_created, bulk.total_updated,
        len(bulk.errors), len(bulk.job_errors),
    )
    return bulk


async def refresh_booking(
    db: AsyncSession, booking: Booking, provider: JobProvider
) -> Optional[JobReconcileResult]:
    """
    Re-fetch a single synced booking's job and reconcile it.
    Bookings created locally (no external id) are left alone and return None.
    """
    if not booking.servicem8_job_uuid:
        return None
    job = await provider.get_job(booking.servicem8_job_uuid)
    job = {**(job or {}), "uuid": booking.servicem8_job_uuid}
    return await reconcile_job(db, booking.customer_id, job, provider)

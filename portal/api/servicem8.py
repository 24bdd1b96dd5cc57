"""
ServiceM8 admin API - connection test, company lookup, customer linking and sync.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portal.api.dependencies import get_customer_or_404
from portal.database import get_db
from portal.integrations.provider_base import JobProvider
from portal.integrations.servicem8 import ServiceM8Error, get_servicem8_client
from portal.schemas.api_responses import CompanySummary
from portal.schemas.sync_results import BulkSyncResult
from portal.services.job_sync import sync_all_customers, sync_customer

logger = logging.getLogger(__name__)
router = APIRouter(tags=["servicem8"])

TEST_SAMPLE_SIZE = 5


def _company_summary(company: dict) -> CompanySummary:
    return CompanySummary(
        uuid=company.get("uuid"),
        name=company.get("name"),
        email=company.get("email"),
        phone=company.get("phone"),
        address=company.get("address"),
    )


@router.get("/api/v1/servicem8/test")
async def test_connection(provider: JobProvider = Depends(get_servicem8_client)):
    """Verify the API key by listing companies."""
    try:
        companies = await provider.get_all_companies()
    except ServiceM8Error as e:
        logger.warning("ServiceM8 connection test failed: %s", str(e))
        raise HTTPException(status_code=502, detail=f"ServiceM8 connection failed: {e}")

    return {
        "connected": True,
        "message": "ServiceM8 connection successful",
        "companies": [_company_summary(c) for c in companies[:TEST_SAMPLE_SIZE]],
        "total_companies": len(companies),
    }


@router.get("/api/v1/servicem8/companies", response_model=list[CompanySummary])
async def list_companies(provider: JobProvider = Depends(get_servicem8_client)):
    try:
        companies = await provider.get_all_companies()
    except ServiceM8Error as e:
        raise HTTPException(status_code=502, detail=f"Error fetching companies from ServiceM8: {e}")
    return [_company_summary(c) for c in companies]


@router.post("/api/v1/servicem8/customers/{customer_id}/link")
async def link_customer(
    customer_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    provider: JobProvider = Depends(get_servicem8_client),
):
    """Link a customer to a ServiceM8 company after checking the company exists."""
    try:
        payload = await request.json()
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    company_uuid = (payload.get("servicem8_company_uuid") or "").strip() if isinstance(payload, dict) else ""
    if not company_uuid:
        raise HTTPException(status_code=400, detail="servicem8_company_uuid is required")

    customer = await get_customer_or_404(db, customer_id)

    try:
        await provider.get_company(company_uuid)
    except ServiceM8Error as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Company not found in ServiceM8")
        raise HTTPException(status_code=502, detail=f"Could not verify ServiceM8 company: {e}")

    customer.servicem8_company_uuid = company_uuid
    await db.flush()
    logger.info(
        "Customer %s linked to ServiceM8 company %s", customer_id, company_uuid,
        extra={"customer_id": customer_id, "company_uuid": company_uuid},
    )

    return {"customer_id": customer.id, "servicem8_company_uuid": company_uuid}


@router.post("/api/v1/servicem8/customers/{customer_id}/sync")
async def sync_customer_jobs_endpoint(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    provider: JobProvider = Depends(get_servicem8_client),
):
    """Sync one customer's ServiceM8 jobs now."""
    customer = await get_customer_or_404(db, customer_id)
    if not customer.is_linked:
        raise HTTPException(status_code=400, detail="Customer not linked to ServiceM8 company")

    try:
        result = await sync_customer(db, customer, provider)
    except ServiceM8Error as e:
        raise HTTPException(status_code=502, detail=f"Error syncing customer jobs: {e}")

    return result.model_dump()


@router.post("/api/v1/servicem8/sync-all", response_model=BulkSyncResult)
async def sync_all(
    db: AsyncSession = Depends(get_db),
    provider: JobProvider = Depends(get_servicem8_client),
):
    """Sync every linked customer. Per-customer failures are reported, not raised."""
    return await sync_all_customers(db, provider)


@router.get("/api/v1/servicem8/customers/{customer_id}/info")
async def customer_info(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    provider: JobProvider = Depends(get_servicem8_client),
):
    """Link status plus live company details and job count."""
    customer = await get_customer_or_404(db, customer_id)
    if not customer.is_linked:
        return {"linked": False, "servicem8_company_uuid": None}

    company_uuid = customer.servicem8_company_uuid
    try:
        company = await provider.get_company(company_uuid)
        jobs = await provider.get_jobs_by_company(company_uuid)
    except ServiceM8Error as e:
        return {
            "linked": True,
            "servicem8_company_uuid": company_uuid,
            "error": f"Could not fetch ServiceM8 data: {e}",
        }

    return {
        "linked": True,
        "servicem8_company_uuid": company_uuid,
        "company": _company_summary(company).model_dump(),
        "job_count": len(jobs),
    }

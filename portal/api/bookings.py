"""
Customer bookings API - list, detail and create.

Listing a linked customer's bookings first pulls their ServiceM8 jobs
(SYNC_ON_READ), and the detail view refreshes a synced booking from its job.
Provider failures there never fail the request: local data is returned with
sync_error set.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.api.dependencies import (
    attachment_summary,
    booking_summary,
    get_booking_or_404,
    get_customer_or_404,
    message_summary,
)
from portal.config import get_settings
from portal.database import get_db
from portal.integrations.provider_base import JobProvider
from portal.integrations.servicem8 import get_servicem8_client
from portal.models.attachment import FileAttachment
from portal.models.booking import Booking, BookingStatus
from portal.models.message import Message
from portal.schemas.api_responses import (
    BookingCreateRequest,
    BookingDetailResponse,
    BookingListResponse,
    BookingSummary,
)
from portal.services.job_sync import refresh_booking, sync_customer

logger = logging.getLogger(__name__)
router = APIRouter(tags=["bookings"])


@router.get("/api/v1/customers/{customer_id}/bookings", response_model=BookingListResponse)
async def list_bookings(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    provider: JobProvider = Depends(get_servicem8_client),
):
    """All bookings for a customer, newest scheduled first."""
    customer = await get_customer_or_404(db, customer_id)

    sync_error = None
    if get_settings().sync_on_read and customer.is_linked:
        try:
            await sync_customer(db, customer, provider)
        except Exception as e:
            logger.warning(
                "On-read ServiceM8 sync failed, serving local bookings: %s", str(e),
                extra={"customer_id": customer_id},
            )
            sync_error = str(e)

    result = await db.execute(
        select(Booking)
        .where(Booking.customer_id == customer_id)
        .order_by(Booking.scheduled_date.desc().nulls_last(), Booking.id.desc())
    )
    bookings = result.scalars().all()

    return BookingListResponse(
        bookings=[booking_summary(b) for b in bookings],
        total=len(bookings),
        sync_error=sync_error,
    )


@router.get(
    "/api/v1/customers/{customer_id}/bookings/{booking_id}",
    response_model=BookingDetailResponse,
)
async def get_booking(
    customer_id: int,
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    provider: JobProvider = Depends(get_servicem8_client),
):
    """Booking detail with attachments and messages."""
    booking = await get_booking_or_404(db, customer_id, booking_id)

    sync_error = None
    if booking.servicem8_job_uuid:
        try:
            async with db.begin_nested():
                await refresh_booking(db, booking, provider)
        except Exception as e:
            logger.warning(
                "ServiceM8 refresh failed for booking %s: %s", booking_id, str(e),
                extra={"customer_id": customer_id, "booking_id": booking_id},
            )
            sync_error = str(e)

    attachments = await db.execute(
        select(FileAttachment)
        .where(FileAttachment.booking_id == booking_id)
        .order_by(FileAttachment.created_at.desc(), FileAttachment.id.desc())
    )
    messages = await db.execute(
        select(Message)
        .where(Message.booking_id == booking_id)
        .order_by(Message.created_at, Message.id)
    )

    return BookingDetailResponse(
        booking=booking_summary(booking),
        attachments=[attachment_summary(a) for a in attachments.scalars().all()],
        messages=[message_summary(m) for m in messages.scalars().all()],
        sync_error=sync_error,
    )


@router.post(
    "/api/v1/customers/{customer_id}/bookings",
    response_model=BookingSummary,
    status_code=201,
)
async def create_booking(
    customer_id: int,
    payload: BookingCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a booking directly from the portal. It starts as pending and has no
    ServiceM8 job; only a sync links a booking to a job.
    """
    await get_customer_or_404(db, customer_id)

    title = payload.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")

    booking = Booking(
        customer_id=customer_id,
        servicem8_job_uuid=None,
        title=title,
        description=payload.description,
        scheduled_date=payload.scheduled_date,
        address=payload.address,
        status=BookingStatus.PENDING.value,
        total=0.0,
    )
    db.add(booking)
    await db.flush()

    logger.info(
        "Booking %s created by customer %s", booking.id, customer_id,
        extra={"customer_id": customer_id, "booking_id": booking.id},
    )
    return booking_summary(booking)

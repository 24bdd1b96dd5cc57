"""
Shared lookups for customer-scoped endpoints.
Authentication sits in front of this service; routes are scoped by customer id.
"""
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.attachment import FileAttachment
from portal.models.booking import Booking
from portal.models.customer import Customer
from portal.models.message import Message
from portal.schemas.api_responses import AttachmentSummary, BookingSummary, MessageSummary


async def get_customer_or_404(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


async def get_booking_or_404(db: AsyncSession, customer_id: int, booking_id: int) -> Booking:
    """Fetch a booking, 404 unless it belongs to the customer."""
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id, Booking.customer_id == customer_id)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def booking_summary(booking: Booking) -> BookingSummary:
    return BookingSummary(
        id=booking.id,
        customer_id=booking.customer_id,
        servicem8_job_uuid=booking.servicem8_job_uuid,
        title=booking.title,
        description=booking.description,
        status=booking.status,
        scheduled_date=booking.scheduled_date,
        completed_date=booking.completed_date,
        address=booking.address,
        total=booking.total or 0.0,
        last_synced_at=booking.last_synced_at,
        created_at=booking.created_at,
    )


def attachment_summary(attachment: FileAttachment) -> AttachmentSummary:
    return AttachmentSummary(
        id=attachment.id,
        booking_id=attachment.booking_id,
        servicem8_attachment_uuid=attachment.servicem8_attachment_uuid,
        file_name=attachment.file_name,
        file_url=attachment.file_url,
        file_type=attachment.file_type,
        file_size=attachment.file_size or 0,
        created_at=attachment.created_at,
    )


def message_summary(message: Message) -> MessageSummary:
    return MessageSummary(
        id=message.id,
        booking_id=message.booking_id,
        customer_id=message.customer_id,
        content=message.content,
        sender_type=message.sender_type,
        is_read=message.is_read,
        created_at=message.created_at,
    )

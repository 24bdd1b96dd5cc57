"""
Booking messages API - append-only conversation per booking.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.api.dependencies import get_booking_or_404, message_summary
from portal.database import get_db
from portal.models.message import Message
from portal.schemas.api_responses import MessageCreateRequest, MessageSummary

logger = logging.getLogger(__name__)
router = APIRouter(tags=["messages"])


@router.get(
    "/api/v1/customers/{customer_id}/bookings/{booking_id}/messages",
    response_model=list[MessageSummary],
)
async def list_messages(
    customer_id: int,
    booking_id: int,
    db: AsyncSession = Depends(get_db),
):
    await get_booking_or_404(db, customer_id, booking_id)
    result = await db.execute(
        select(Message)
        .where(Message.booking_id == booking_id)
        .order_by(Message.created_at, Message.id)
    )
    return [message_summary(m) for m in result.scalars().all()]


@router.post(
    "/api/v1/customers/{customer_id}/bookings/{booking_id}/messages",
    response_model=MessageSummary,
    status_code=201,
)
async def send_message(
    customer_id: int,
    booking_id: int,
    payload: MessageCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Send a message from the customer about one of their bookings."""
    if not payload.content.strip():
        raise HTTPException(status_code=400, detail="Message content is required")

    await get_booking_or_404(db, customer_id, booking_id)

    message = Message(
        booking_id=booking_id,
        customer_id=customer_id,
        content=payload.content.strip(),
        sender_type="customer",
        is_read=False,
    )
    db.add(message)
    await db.flush()

    logger.info(
        "Message %s posted on booking %s", message.id, booking_id,
        extra={"customer_id": customer_id, "booking_id": booking_id},
    )
    return message_summary(message)

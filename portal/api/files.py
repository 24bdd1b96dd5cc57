"""
Booking files API - list attachments and register a file by URL.
Files are stored elsewhere; only their metadata lives here.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.api.dependencies import attachment_summary, get_booking_or_404
from portal.database import get_db
from portal.models.attachment import FileAttachment
from portal.schemas.api_responses import AttachmentSummary, FileCreateRequest

logger = logging.getLogger(__name__)
router = APIRouter(tags=["files"])


@router.get(
    "/api/v1/customers/{customer_id}/bookings/{booking_id}/files",
    response_model=list[AttachmentSummary],
)
async def list_files(
    customer_id: int,
    booking_id: int,
    db: AsyncSession = Depends(get_db),
):
    await get_booking_or_404(db, customer_id, booking_id)
    result = await db.execute(
        select(FileAttachment)
        .where(FileAttachment.booking_id == booking_id)
        .order_by(FileAttachment.created_at.desc(), FileAttachment.id.desc())
    )
    return [attachment_summary(a) for a in result.scalars().all()]


@router.post(
    "/api/v1/customers/{customer_id}/bookings/{booking_id}/files",
    response_model=AttachmentSummary,
    status_code=201,
)
async def add_file(
    customer_id: int,
    booking_id: int,
    payload: FileCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    if not payload.file_name.strip() or not payload.file_url.strip():
        raise HTTPException(status_code=400, detail="file_name and file_url are required")

    await get_booking_or_404(db, customer_id, booking_id)

    attachment = FileAttachment(
        booking_id=booking_id,
        servicem8_attachment_uuid=payload.servicem8_attachment_uuid or None,
        file_name=payload.file_name.strip(),
        file_url=payload.file_url.strip(),
        file_type=payload.file_type,
        file_size=max(payload.file_size, 0),
    )
    try:
        async with db.begin_nested():
            db.add(attachment)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Attachment already exists on this booking")

    logger.info(
        "File %s added to booking %s", attachment.file_name, booking_id,
        extra={"customer_id": customer_id, "booking_id": booking_id},
    )
    return attachment_summary(attachment)

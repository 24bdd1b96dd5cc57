"""
Record reconciler - maps one ServiceM8 job onto one local Booking.

Bookings are upserted by (customer_id, servicem8_job_uuid): every derived field
is overwritten on each pass, so re-running with unchanged remote data changes
nothing but last_synced_at. Attachments are create-only by
(booking_id, servicem8_attachment_uuid).

The insert runs inside a SAVEPOINT. If a concurrent writer inserted the same key
first, the unique constraint rejects ours and the row that won is updated instead.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.integrations.provider_base import JobProvider
from portal.models.attachment import FileAttachment
from portal.models.booking import Booking
from portal.schemas.sync_results import JobReconcileResult
from portal.services.job_fields import derive_attachment_fields, derive_booking_fields

logger = logging.getLogger(__name__)


class MissingExternalIdError(ValueError):
    """A remote record arrived without the uuid that keys the upsert."""


async def find_booking(db: AsyncSession, customer_id: int, job_uuid: str) -> Optional[Booking]:
    result = await db.execute(
        select(Booking).where(
            Booking.customer_id == customer_id,
            Booking.servicem8_job_uuid == job_uuid,
        )
    )
    return result.scalar_one_or_none()


def _apply_fields(booking: Booking, fields: dict, synced_at: datetime) -> None:
    for name, value in fields.items():
        setattr(booking, name, value)
    booking.last_synced_at = synced_at


async def upsert_booking(
    db: AsyncSession, customer_id: int, job_uuid: str, fields: dict
) -> tuple[Booking, bool]:
    """
    Insert or update the booking for (customer_id, job_uuid).
    Returns (booking, created).
    """
    now = datetime.now(timezone.utc)
    booking = await find_booking(db, customer_id, job_uuid)
    if booking is not None:
        _apply_fields(booking, fields, now)
        await db.flush()
        return booking, False

    booking = Booking(customer_id=customer_id, servicem8_job_uuid=job_uuid)
    _apply_fields(booking, fields, now)
    try:
        async with db.begin_nested():
            db.add(booking)
    except IntegrityError:
        logger.info(
            "Booking insert for job %s lost a race, updating existing row", job_uuid,
            extra={"customer_id": customer_id, "job_uuid": job_uuid},
        )
        booking = await find_booking(db, customer_id, job_uuid)
        if booking is None:
            raise
        _apply_fields(booking, fields, now)
        await db.flush()
        return booking, False

    return booking, True


async def reconcile_attachments(
    db: AsyncSession, booking_id: int, job_uuid: str, provider: JobProvider
) -> int:
    """
    Create local rows for remote attachments not seen before.
    Existing rows are never modified. Returns the number of rows created.
    """
    attachments = await provider.get_job_attachments(job_uuid)
    created = 0

    async with db.begin_nested():
        for attachment in attachments:
            attachment_uuid = attachment.get("uuid")
            if not attachment_uuid:
                logger.warning(
                    "Skipping attachment without uuid on job %s", job_uuid,
                    extra={"booking_id": booking_id, "job_uuid": job_uuid},
                )
                continue

            result = await db.execute(
                select(FileAttachment.id).where(
                    FileAttachment.booking_id == booking_id,
                    FileAttachment.servicem8_attachment_uuid == attachment_uuid,
                )
            )
            if result.scalar_one_or_none() is not None:
                continue

            fields = derive_attachment_fields(
                attachment, provider.attachment_file_url(attachment_uuid)
            )
            db.add(FileAttachment(
                booking_id=booking_id,
                servicem8_attachment_uuid=attachment_uuid,
                **fields,
            ))
            # Flush per row so duplicate uuids within one response hit the lookup above
            await db.flush()
            created += 1

    if created:
        logger.info(
            "Created %d attachments for job %s", created, job_uuid,
            extra={"booking_id": booking_id, "job_uuid": job_uuid},
        )
    return created


async def reconcile_job(
    db: AsyncSession, customer_id: int, job: dict, provider: JobProvider
) -> JobReconcileResult:
    """
    Upsert the booking for a remote job, then sync its attachments.

    An attachment failure is contained: the booking upsert stands and the
    error is reported on the result. Upsert failures propagate.
    """
    job_uuid = job.get("uuid")
    if not job_uuid:
        raise MissingExternalIdError("ServiceM8 job has no uuid")

    booking, created = await upsert_booking(db, customer_id, job_uuid, derive_booking_fields(job))
    booking_id = booking.id
    result = JobReconcileResult(job_uuid=job_uuid, booking_id=booking_id, created=created)

    try:
        result.attachments_created = await reconcile_attachments(db, booking_id, job_uuid, provider)
    except Exception as e:
        logger.warning(
            "Attachment sync failed for job %s, booking kept: %s", job_uuid, str(e),
            extra={"customer_id": customer_id, "booking_id": booking_id, "job_uuid": job_uuid},
        )
        result.attachments_error = str(e)

    return result

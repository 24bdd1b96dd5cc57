"""
Field derivation for ServiceM8 records.

Remote data errors (missing fields, zero dates, non-numeric prices) resolve to
documented fallback values here and never raise.
"""
import math
from datetime import datetime, timezone
from typing import Any, Optional

from portal.services.status_mapping import map_status

UNTITLED_JOB = "Untitled Job"
DEFAULT_ATTACHMENT_NAME = "Attachment"
UNKNOWN_FILE_TYPE = "unknown"

# ServiceM8 sends unset dates as this sentinel rather than null
ZERO_DATE_PREFIX = "0000-00-00"

PRICE_FIELDS = ("total_price", "job_price", "invoice_total")


def first_non_empty(record: dict, *keys: str, default: Any = None) -> Any:
    """Return the first value under *keys* that is neither None nor blank."""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return default


def parse_servicem8_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a ServiceM8 timestamp ("YYYY-MM-DD HH:MM:SS").
    Zero dates and unparseable values return None. Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text or text.startswith(ZERO_DATE_PREFIX):
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def first_datetime(record: dict, *keys: str) -> Optional[datetime]:
    for key in keys:
        parsed = parse_servicem8_datetime(record.get(key))
        if parsed is not None:
            return parsed
    return None


def parse_amount(value: Any) -> Optional[float]:
    """Parse a price field. Returns None for anything that is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(amount):
        return None
    return amount


def first_amount(record: dict, *keys: str) -> float:
    for key in keys:
        amount = parse_amount(record.get(key))
        if amount is not None:
            return amount
    return 0.0


def parse_file_size(value: Any) -> int:
    amount = parse_amount(value)
    if amount is None or amount < 0:
        return 0
    return int(amount)


def derive_booking_fields(job: dict) -> dict:
    """Build the Booking column values for a remote job."""
    return {
        "title": str(first_non_empty(job, "job_address", "generated_job_id", default=UNTITLED_JOB))[:255],
        "description": first_non_empty(job, "job_description", "job_notes", default=""),
        "status": map_status(job.get("status"), job.get("job_is_quoted")).value,
        "scheduled_date": first_datetime(job, "work_start_date", "date_created"),
        "completed_date": first_datetime(job, "work_end_date", "date_completed"),
        "address": str(first_non_empty(job, "job_address", "billing_address", default=""))[:500],
        "total": first_amount(job, *PRICE_FIELDS),
    }


def derive_attachment_fields(attachment: dict, file_url: str) -> dict:
    """Build the FileAttachment column values for a remote attachment."""
    return {
        "file_name": str(first_non_empty(
            attachment, "attachment_name", "file_name", default=DEFAULT_ATTACHMENT_NAME
        ))[:255],
        "file_url": file_url,
        "file_type": str(first_non_empty(attachment, "file_type", default=UNKNOWN_FILE_TYPE))[:100],
        "file_size": parse_file_size(attachment.get("file_size")),
    }

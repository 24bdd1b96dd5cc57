"""
ServiceM8 status mapping - translates the remote job status vocabulary
into the local BookingStatus enumeration.
"""
from typing import Any, Optional

from portal.models.booking import BookingStatus

_STATUS_MAP = {
    "quote": BookingStatus.PENDING,
    "work order": BookingStatus.SCHEDULED,
    "in progress": BookingStatus.IN_PROGRESS,
    "completed": BookingStatus.COMPLETED,
    "cancelled": BookingStatus.CANCELLED,
}

_FALSE_FLAGS = {"", "0", "false", "no", "off"}


def is_truthy_flag(value: Any) -> bool:
    """
    Coerce a ServiceM8 boolean-ish field.
    The API sends flags as "1"/"0" strings, so "0" must be false.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_FLAGS
    return bool(value)


def map_status(raw_status: Optional[str], is_quoted: Any = False) -> BookingStatus:
    """
    Map a ServiceM8 job status onto a local booking status.

    Quote-stage jobs are always pending regardless of their raw status.
    Unknown or missing statuses fall back to pending.
    """
    if is_truthy_flag(is_quoted):
        return BookingStatus.PENDING
    if not isinstance(raw_status, str):
        return BookingStatus.PENDING
    return _STATUS_MAP.get(raw_status.strip().lower(), BookingStatus.PENDING)

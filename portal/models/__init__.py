"""
Database models - import all models here so Base.metadata sees every table.
"""
from portal.models.customer import Customer
from portal.models.booking import Booking, BookingStatus
from portal.models.attachment import FileAttachment
from portal.models.message import Message

__all__ = [
    "Customer",
    "Booking",
    "BookingStatus",
    "FileAttachment",
    "Message",
]

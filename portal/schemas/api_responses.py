"""
API request/response schemas for the customer portal endpoints.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class BookingCreateRequest(BaseModel):
    title: str = ""
    description: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    address: Optional[str] = None


class MessageCreateRequest(BaseModel):
    content: str = ""


class FileCreateRequest(BaseModel):
    file_name: str = ""
    file_url: str = ""
    file_type: Optional[str] = None
    file_size: int = 0
    servicem8_attachment_uuid: Optional[str] = None


class AttachmentSummary(BaseModel):
    id: int
    booking_id: int
    servicem8_attachment_uuid: Optional[str] = None
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: int = 0
    created_at: Optional[datetime] = None


class MessageSummary(BaseModel):
    id: int
    booking_id: int
    customer_id: int
    content: str
    sender_type: str
    is_read: bool = False
    created_at: Optional[datetime] = None


class BookingSummary(BaseModel):
    id: int
    customer_id: int
    servicem8_job_uuid: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: str
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    address: Optional[str] = None
    total: float = 0.0
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class BookingListResponse(BaseModel):
    bookings: list[BookingSummary]
    total: int
    sync_error: Optional[str] = Field(
        default=None, description="Set when the on-read ServiceM8 sync failed; local data is still returned"
    )


class BookingDetailResponse(BaseModel):
    booking: BookingSummary
    attachments: list[AttachmentSummary] = Field(default_factory=list)
    messages: list[MessageSummary] = Field(default_factory=list)
    sync_error: Optional[str] = None


class CompanySummary(BaseModel):
    uuid: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

"""
FileAttachment model - files attached to a booking.
Synced rows are create-only: the reconciler never rewrites an existing attachment.
"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Integer, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from portal.database import Base


class FileAttachment(Base):
    __tablename__ = "file_attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("bookings.id"), nullable=False
    )
    servicem8_attachment_uuid: Mapped[Optional[str]] = mapped_column(String(255))

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    file_type: Mapped[Optional[str]] = mapped_column(String(100))
    file_size: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    booking: Mapped["Booking"] = relationship(back_populates="attachments")

    __table_args__ = (
        UniqueConstraint(
            "booking_id", "servicem8_attachment_uuid", name="uq_file_attachments_booking_attachment"
        ),
        Index("ix_file_attachments_booking_id", "booking_id"),
    )

    def __repr__(self) -> str:
        return f"<FileAttachment {self.file_name} booking={self.booking_id}>"

"""
Booking model - a customer's job, either created locally or synced from ServiceM8.
At most one booking exists per (customer_id, servicem8_job_uuid); the unique
constraint backs the idempotent upsert in the reconciler.
"""
import enum
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Text, Float, Integer, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from portal.database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=False
    )
    servicem8_job_uuid: Mapped[Optional[str]] = mapped_column(String(255))

    # Job details
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.PENDING.value
    )  # pending, scheduled, in_progress, completed, cancelled
    scheduled_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    address: Mapped[Optional[str]] = mapped_column(String(500))
    total: Mapped[float] = mapped_column(Float, default=0.0)

    # Sync tracking
    last_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    customer: Mapped["Customer"] = relationship(back_populates="bookings")
    attachments: Mapped[list["FileAttachment"]] = relationship(
        back_populates="booking", order_by="FileAttachment.created_at.desc()"
    )
    messages: Mapped[list["Message"]] = relationship(
        back_populates="booking", order_by="Message.created_at"
    )

    __table_args__ = (
        UniqueConstraint("customer_id", "servicem8_job_uuid", name="uq_bookings_customer_job"),
        Index("ix_bookings_customer_id", "customer_id"),
        Index("ix_bookings_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking {self.id} job={self.servicem8_job_uuid} status={self.status}>"

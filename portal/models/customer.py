"""
Customer model - a portal account, optionally linked to a ServiceM8 company.
The company UUID is the sync join key: NULL or empty means "not linked".
"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Integer, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from portal.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    # ServiceM8 link
    servicem8_company_uuid: Mapped[Optional[str]] = mapped_column(String(255))

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
    bookings: Mapped[list["Booking"]] = relationship(back_populates="customer")

    __table_args__ = (
        Index("ix_customers_servicem8_company_uuid", "servicem8_company_uuid"),
    )

    @property
    def is_linked(self) -> bool:
        return bool(self.servicem8_company_uuid)

    def __repr__(self) -> str:
        return f"<Customer {self.id} {self.email} linked={self.is_linked}>"

"""Booking and contract models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import MONEY, Base, PortableUUID, TenantOwnedMixin, TimestampMixin


class BookingStatus(str, Enum):
    """Lifecycle status of a single booking."""

    INQUIRY = "inquiry"
    PENDING = "pending"  # Proposal shared with the customer
    TENTATIVE = "tentative"
    CONFIRMED_DEPOSIT_PAID = "confirmed_deposit_paid"
    CONFIRMED_FULLY_PAID = "confirmed_fully_paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ContractStatus(str, Enum):
    """Label on a contract. Not itself conflict-checked."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Contract(TenantOwnedMixin, TimestampMixin, Base):
    """A named group of bookings forming one multi-date event.

    total_amount is derived from the live member bookings and is only
    written by the contract aggregate.
    """

    __tablename__ = "contracts"

    customer_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("customers.id"), nullable=False
    )
    contract_name: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ContractStatus.DRAFT.value
    )
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))

    __table_args__ = (
        Index("idx_contract_tenant", "tenant_id"),
        Index("idx_contract_customer", "tenant_id", "customer_id"),
    )

    def __repr__(self) -> str:
        return f"<Contract(id={self.id}, name={self.contract_name}, status={self.status})>"


class Booking(TenantOwnedMixin, TimestampMixin, Base):
    """One calendar reservation of a space.

    Times are stored as minutes since midnight so that every comparison
    is an integer comparison. Bookings are never physically deleted;
    cancellation is a status transition.
    """

    __tablename__ = "bookings"

    contract_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(), ForeignKey("contracts.id"), nullable=True
    )
    customer_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(), ForeignKey("customers.id"), nullable=True
    )
    venue_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(), ForeignKey("venues.id"), nullable=True
    )
    space_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(), ForeignKey("spaces.id"), nullable=True
    )

    # Event
    event_name: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    end_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status and money
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=BookingStatus.INQUIRY.value
    )
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    deposit_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    # Cancellation tracking
    cancellation_reason: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cancellation_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)

    __table_args__ = (
        CheckConstraint("start_minute >= 0 AND end_minute <= 1440", name="ck_booking_minute_range"),
        CheckConstraint("start_minute < end_minute", name="ck_booking_interval_order"),
        CheckConstraint("guest_count >= 0", name="ck_booking_guest_count"),
        Index("idx_booking_slot", "tenant_id", "space_id", "event_date"),
        Index("idx_booking_contract", "tenant_id", "contract_id"),
        Index("idx_booking_status", "tenant_id", "status"),
    )

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED.value

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, space_id={self.space_id}, date={self.event_date}, "
            f"{self.start_minute}-{self.end_minute}, status={self.status})>"
        )

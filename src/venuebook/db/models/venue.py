"""Venue, space and customer models.

These rows are owned by the surrounding application. The booking engine
only reads them to confirm that a referenced id belongs to the tenant.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, PortableUUID, TenantOwnedMixin, TimestampMixin


class Venue(TenantOwnedMixin, TimestampMixin, Base):
    """A physical venue operated by a tenant."""

    __tablename__ = "venues"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("idx_venue_tenant", "tenant_id"),)

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name})>"


class Space(TenantOwnedMixin, TimestampMixin, Base):
    """A bookable unit (hall, room, terrace) inside a venue."""

    __tablename__ = "spaces"

    venue_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("venues.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("idx_space_tenant", "tenant_id"),
        Index("idx_space_venue", "tenant_id", "venue_id"),
    )

    def __repr__(self) -> str:
        return f"<Space(id={self.id}, venue_id={self.venue_id}, name={self.name})>"


class Customer(TenantOwnedMixin, TimestampMixin, Base):
    """A customer of a tenant (the party that books events)."""

    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (Index("idx_customer_tenant", "tenant_id"),)

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name={self.name})>"

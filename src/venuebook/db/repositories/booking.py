"""Booking repository."""

from collections.abc import Collection
from datetime import date
from uuid import UUID

from sqlalchemy import select

from venuebook.db.models.booking import Booking, BookingStatus
from venuebook.db.models.venue import Customer

from .base import TenantScopedRepository


class BookingRepository(TenantScopedRepository[Booking]):
    """Tenant-scoped access to bookings."""

    async def find_candidates(
        self,
        tenant_id: UUID,
        space_id: UUID,
        event_date: date,
        exclude_ids: Collection[UUID] = (),
    ) -> list[Booking]:
        """Load the bookings a new slot must be checked against.

        Returns every non-cancelled booking of the tenant in ``space_id`` on
        ``event_date``, minus ``exclude_ids``. The overlap predicate itself is
        evaluated in memory by the caller.
        """
        stmt = (
            select(Booking)
            .where(Booking.tenant_id == tenant_id)
            .where(Booking.space_id == space_id)
            .where(Booking.event_date == event_date)
            .where(Booking.status != BookingStatus.CANCELLED.value)
            .order_by(Booking.start_minute, Booking.id)
        )
        if exclude_ids:
            stmt = stmt.where(Booking.id.not_in(list(exclude_ids)))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def customer_names(
        self, tenant_id: UUID, customer_ids: Collection[UUID]
    ) -> dict[UUID, str]:
        """Names of the given customers of the tenant, keyed by id."""
        if not customer_ids:
            return {}
        stmt = (
            select(Customer.id, Customer.name)
            .where(Customer.tenant_id == tenant_id)
            .where(Customer.id.in_(list(customer_ids)))
        )
        result = await self.db.execute(stmt)
        return {row.id: row.name for row in result}

    async def list_for_contract(
        self,
        tenant_id: UUID,
        contract_id: UUID,
        *,
        live_only: bool = False,
    ) -> list[Booking]:
        """Member bookings of a contract, ordered by date then start time."""
        stmt = (
            self.scoped(tenant_id)
            .where(Booking.contract_id == contract_id)
            .order_by(Booking.event_date, Booking.start_minute, Booking.id)
        )
        if live_only:
            stmt = stmt.where(Booking.status != BookingStatus.CANCELLED.value)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_filtered(
        self,
        tenant_id: UUID,
        *,
        space_id: UUID | None = None,
        event_date: date | None = None,
        include_cancelled: bool = True,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Booking]:
        stmt = self.scoped(tenant_id)
        if space_id is not None:
            stmt = stmt.where(Booking.space_id == space_id)
        if event_date is not None:
            stmt = stmt.where(Booking.event_date == event_date)
        if not include_cancelled:
            stmt = stmt.where(Booking.status != BookingStatus.CANCELLED.value)
        stmt = stmt.order_by(Booking.event_date, Booking.start_minute, Booking.id)
        result = await self.db.execute(stmt.limit(limit).offset(offset))
        return list(result.scalars().all())

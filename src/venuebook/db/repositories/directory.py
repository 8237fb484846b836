"""Existence checks against rows owned by the surrounding application.

Customers, venues and spaces are referenced by bookings but never
written by the booking engine.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.db.models.venue import Customer, Space, Venue


class DirectoryRepository:
    """Answers "does this id belong to this tenant?" for customers and spaces."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def customer_exists(self, tenant_id: UUID, customer_id: UUID) -> bool:
        stmt = select(Customer.id).where(
            Customer.tenant_id == tenant_id, Customer.id == customer_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def venue_exists(self, tenant_id: UUID, venue_id: UUID) -> bool:
        stmt = select(Venue.id).where(Venue.tenant_id == tenant_id, Venue.id == venue_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_space(self, tenant_id: UUID, space_id: UUID) -> Space | None:
        stmt = select(Space).where(Space.tenant_id == tenant_id, Space.id == space_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

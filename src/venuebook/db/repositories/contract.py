"""Contract repository."""

from uuid import UUID

from venuebook.db.models.booking import Contract

from .base import TenantScopedRepository


class ContractRepository(TenantScopedRepository[Contract]):
    """Tenant-scoped access to contracts."""

    async def list_by_customer(self, tenant_id: UUID, customer_id: UUID) -> list[Contract]:
        stmt = (
            self.scoped(tenant_id)
            .where(Contract.customer_id == customer_id)
            .order_by(Contract.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

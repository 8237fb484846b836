"""Base repository with tenant-scoped reads.

Every query issued here carries ``tenant_id`` as an equality predicate.
There is no unscoped ``get``: a row from another tenant is
indistinguishable from a missing row.

Usage:
    from venuebook.db.repositories.base import TenantScopedRepository

    class ContractRepository(TenantScopedRepository[Contract]):
        pass

    repo = ContractRepository(session)
    contract = await repo.get(tenant_id, contract_id)
"""

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.db.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class TenantScopedRepository(Generic[ModelType]):
    """Generic repository for models that carry a ``tenant_id`` column.

    Type Parameters:
        ModelType: The SQLAlchemy model class

    Attributes:
        model: The model class
        db: The database session
    """

    model: type[ModelType]

    def __init__(self, db: AsyncSession):
        self.db = db

    def __init_subclass__(cls, **kwargs):
        """Extract model type from generic parameter."""
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            args = getattr(base, "__args__", None)
            if args:
                first_arg = args[0]
                if isinstance(first_arg, type) and issubclass(first_arg, Base):
                    cls.model = first_arg
                    break

    def scoped(self, tenant_id: UUID) -> Select:
        """SELECT over the model restricted to one tenant."""
        return select(self.model).where(self.model.tenant_id == tenant_id)

    async def get(self, tenant_id: UUID, pk: UUID, *, for_update: bool = False) -> ModelType | None:
        """Get a single row by primary key within the tenant.

        Args:
            tenant_id: Owning tenant
            pk: Primary key value
            for_update: Lock the row for the rest of the transaction

        Returns:
            Model instance or None if not visible in the tenant
        """
        stmt = self.scoped(tenant_id).where(self._get_pk_column() == pk)
        if for_update and self.db.get_bind().dialect.name == "postgresql":
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list(
        self,
        tenant_id: UUID,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ModelType]:
        """List rows of the tenant ordered by primary key (UUIDv7, so creation order)."""
        stmt = (
            self.scoped(tenant_id)
            .order_by(self._get_pk_column())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def add(self, obj: ModelType) -> ModelType:
        """Stage a new row and flush it so dependent rows can reference it."""
        self.db.add(obj)
        await self.db.flush()
        return obj

    def _get_pk_column(self):
        mapper = self.model.__mapper__
        pk_cols = mapper.primary_key
        if not pk_cols:
            raise ValueError(f"No primary key found for {self.model.__name__}")
        return pk_cols[0]

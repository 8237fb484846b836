"""Tenant lookup and request-context resolution.

``TenantContextResolver`` is the fail-closed boundary between an
authenticated principal and the booking engine: it either produces a
``RequestContext`` for an active tenant or raises. There is no default
tenant and no global fallback.
"""

from uuid import UUID

import structlog
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from uuid_utils.compat import uuid7

from venuebook.core.audit import AuditLogger
from venuebook.core.context import ActorType, RequestContext, Role, create_context
from venuebook.core.exceptions import (
    TenantNotFoundError,
    TenantResolutionError,
    TenantSuspendedError,
)
from venuebook.db.models.audit import AuditEventType
from venuebook.db.models.tenant import Tenant, TenantStatus

logger = structlog.get_logger()


class TenantService:
    """Service for tenant lookup and lifecycle changes.

    Lifecycle changes are audit-logged.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditLogger(db)

    async def create_tenant(
        self,
        name: str,
        slug: str,
        correlation_id: UUID | None = None,
    ) -> Tenant:
        """Create a new active tenant.

        Raises:
            IntegrityError: If slug already exists
        """
        tenant = Tenant(name=name, slug=slug.lower(), status=TenantStatus.ACTIVE.value)
        self.db.add(tenant)
        await self.db.flush()

        await self.audit.log_event(
            AuditEventType.TENANT_CREATED,
            correlation_id=correlation_id or uuid7(),
            event_data={"name": name, "slug": tenant.slug},
            tenant_id=tenant.tenant_id,
            resource_type="tenant",
            resource_id=str(tenant.tenant_id),
        )
        return tenant

    async def get_tenant(self, tenant_id: UUID) -> Tenant | None:
        result = await self.db.execute(select(Tenant).where(Tenant.tenant_id == tenant_id))
        return result.scalar_one_or_none()

    async def get_tenant_or_raise(self, tenant_id: UUID) -> Tenant:
        """Get a tenant by ID, raising if not found.

        Raises:
            TenantNotFoundError: If tenant does not exist
        """
        tenant = await self.get_tenant(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant

    async def validate_tenant_active(self, tenant_id: UUID) -> Tenant:
        """Return the tenant if it exists and is active.

        Raises:
            TenantNotFoundError: If tenant does not exist
            TenantSuspendedError: If tenant is suspended
        """
        tenant = await self.get_tenant_or_raise(tenant_id)
        if not tenant.is_active:
            raise TenantSuspendedError(tenant_id)
        return tenant

    async def suspend_tenant(self, tenant_id: UUID, correlation_id: UUID | None = None) -> Tenant:
        return await self._set_status(
            tenant_id, TenantStatus.SUSPENDED, AuditEventType.TENANT_SUSPENDED, correlation_id
        )

    async def reactivate_tenant(
        self, tenant_id: UUID, correlation_id: UUID | None = None
    ) -> Tenant:
        return await self._set_status(
            tenant_id, TenantStatus.ACTIVE, AuditEventType.TENANT_REACTIVATED, correlation_id
        )

    async def _set_status(
        self,
        tenant_id: UUID,
        status: TenantStatus,
        event_type: AuditEventType,
        correlation_id: UUID | None,
    ) -> Tenant:
        tenant = await self.get_tenant_or_raise(tenant_id)
        previous = tenant.status
        tenant.status = status.value
        await self.db.flush()

        await self.audit.log_event(
            event_type,
            correlation_id=correlation_id or uuid7(),
            event_data={"previous_status": previous, "status": status.value},
            tenant_id=tenant_id,
            resource_type="tenant",
            resource_id=str(tenant_id),
        )
        return tenant


class Principal(BaseModel):
    """An authenticated caller as handed over by the auth layer.

    Attributes:
        actor_id: Authenticated user or service id
        tenant_id: Tenant the principal belongs to (None for super admins)
        role: Tenant-level role
        assumed_tenant_id: Tenant a super admin is acting on behalf of
    """

    actor_id: UUID
    tenant_id: UUID | None = None
    role: Role = Role.STAFF
    actor_type: ActorType = ActorType.HUMAN
    assumed_tenant_id: UUID | None = None

    model_config = {"frozen": True}


class TenantContextResolver:
    """Resolve a principal into a tenant-scoped RequestContext.

    Rules:
        - A super admin must name the tenant it acts on via ``assumed_tenant_id``.
        - Any other role acts on its own ``tenant_id``; assuming another
          tenant is refused.
        - The tenant must exist and be active.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def resolve(
        self, principal: Principal, correlation_id: UUID | None = None
    ) -> RequestContext:
        """Resolve ``principal`` to a RequestContext.

        Raises:
            TenantResolutionError: If no tenant can be established
            TenantNotFoundError: If the tenant does not exist
            TenantSuspendedError: If the tenant is suspended
        """
        tenant_id = self._select_tenant(principal)

        async with self.session_factory() as session:
            await TenantService(session).validate_tenant_active(tenant_id)

        ctx = create_context(
            tenant_id=tenant_id,
            actor_id=principal.actor_id,
            actor_type=principal.actor_type,
            role=principal.role,
            correlation_id=correlation_id,
        )
        logger.debug(
            "tenant_resolved",
            tenant_id=str(tenant_id),
            role=principal.role.value,
            assumed=principal.assumed_tenant_id is not None,
        )
        return ctx

    @staticmethod
    def _select_tenant(principal: Principal) -> UUID:
        if principal.role == Role.SUPER_ADMIN:
            if principal.assumed_tenant_id is None:
                raise TenantResolutionError(
                    "Super admin must select a tenant before acting on tenant data"
                )
            return principal.assumed_tenant_id

        assumed = principal.assumed_tenant_id
        if assumed is not None and assumed != principal.tenant_id:
            raise TenantResolutionError(
                "Only super admins may act on behalf of another tenant",
                tenant_id=principal.assumed_tenant_id,
            )
        if principal.tenant_id is None:
            raise TenantResolutionError("Principal is not associated with a tenant")
        return principal.tenant_id

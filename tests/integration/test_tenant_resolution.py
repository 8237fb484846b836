"""Integration tests for resolving principals into tenant contexts."""

import pytest
from uuid_utils.compat import uuid7

from venuebook.core.audit import AuditLogger
from venuebook.core.context import Role
from venuebook.core.exceptions import (
    TenantNotFoundError,
    TenantResolutionError,
    TenantSuspendedError,
)
from venuebook.core.tenant import Principal, TenantContextResolver, TenantService
from venuebook.db.models.audit import AuditEventType


@pytest.fixture
def resolver(session_factory) -> TenantContextResolver:
    return TenantContextResolver(session_factory)


class TestResolve:
    """Tests for TenantContextResolver.resolve."""

    async def test_staff_resolves_own_tenant(self, resolver, tenant_a):
        actor_id = uuid7()

        ctx = await resolver.resolve(
            Principal(actor_id=actor_id, tenant_id=tenant_a.tenant_id, role=Role.STAFF)
        )

        assert ctx.tenant_id == tenant_a.tenant_id
        assert ctx.actor_id == actor_id
        assert ctx.role == Role.STAFF
        assert ctx.can_write

    async def test_viewer_resolves_read_only(self, resolver, tenant_a):
        ctx = await resolver.resolve(
            Principal(actor_id=uuid7(), tenant_id=tenant_a.tenant_id, role=Role.VIEWER)
        )

        assert not ctx.can_write

    async def test_correlation_id_carried(self, resolver, tenant_a):
        correlation_id = uuid7()

        ctx = await resolver.resolve(
            Principal(actor_id=uuid7(), tenant_id=tenant_a.tenant_id),
            correlation_id=correlation_id,
        )

        assert ctx.correlation_id == correlation_id

    async def test_no_tenant(self, resolver):
        with pytest.raises(TenantResolutionError):
            await resolver.resolve(Principal(actor_id=uuid7()))

    async def test_unknown_tenant(self, resolver):
        with pytest.raises(TenantNotFoundError):
            await resolver.resolve(Principal(actor_id=uuid7(), tenant_id=uuid7()))

    async def test_suspended_tenant(self, resolver, session_factory, tenant_a):
        async with session_factory() as session:
            await TenantService(session).suspend_tenant(tenant_a.tenant_id)
            await session.commit()

        with pytest.raises(TenantSuspendedError):
            await resolver.resolve(Principal(actor_id=uuid7(), tenant_id=tenant_a.tenant_id))

    async def test_reactivated_tenant(self, resolver, session_factory, tenant_a):
        async with session_factory() as session:
            service = TenantService(session)
            await service.suspend_tenant(tenant_a.tenant_id)
            await service.reactivate_tenant(tenant_a.tenant_id)
            await session.commit()

        ctx = await resolver.resolve(Principal(actor_id=uuid7(), tenant_id=tenant_a.tenant_id))

        assert ctx.tenant_id == tenant_a.tenant_id


class TestAssumedTenant:
    """Super admins act on one tenant at a time, chosen explicitly."""

    async def test_super_admin_must_choose(self, resolver):
        with pytest.raises(TenantResolutionError):
            await resolver.resolve(Principal(actor_id=uuid7(), role=Role.SUPER_ADMIN))

    async def test_super_admin_assumes_tenant(self, resolver, tenant_a, tenant_b):
        ctx = await resolver.resolve(
            Principal(
                actor_id=uuid7(),
                tenant_id=tenant_a.tenant_id,
                role=Role.SUPER_ADMIN,
                assumed_tenant_id=tenant_b.tenant_id,
            )
        )

        assert ctx.tenant_id == tenant_b.tenant_id

    async def test_super_admin_assumed_tenant_must_exist(self, resolver):
        with pytest.raises(TenantNotFoundError):
            await resolver.resolve(
                Principal(actor_id=uuid7(), role=Role.SUPER_ADMIN, assumed_tenant_id=uuid7())
            )

    async def test_admin_cannot_assume_other_tenant(self, resolver, tenant_a, tenant_b):
        with pytest.raises(TenantResolutionError) as exc_info:
            await resolver.resolve(
                Principal(
                    actor_id=uuid7(),
                    tenant_id=tenant_a.tenant_id,
                    role=Role.ADMIN,
                    assumed_tenant_id=tenant_b.tenant_id,
                )
            )

        assert exc_info.value.tenant_id == tenant_b.tenant_id

    async def test_assuming_own_tenant_is_allowed(self, resolver, tenant_a):
        ctx = await resolver.resolve(
            Principal(
                actor_id=uuid7(),
                tenant_id=tenant_a.tenant_id,
                role=Role.MANAGER,
                assumed_tenant_id=tenant_a.tenant_id,
            )
        )

        assert ctx.tenant_id == tenant_a.tenant_id


class TestTenantLifecycleAudit:
    """Tenant lifecycle changes are audit-logged."""

    async def test_suspension_logged(self, session_factory, tenant_a):
        async with session_factory() as session:
            await TenantService(session).suspend_tenant(tenant_a.tenant_id)
            await session.commit()

        async with session_factory() as session:
            events = await AuditLogger(session).query_events(
                tenant_id=tenant_a.tenant_id, event_type=AuditEventType.TENANT_SUSPENDED
            )

        assert len(events) == 1
        assert events[0].event_data["previous_status"] == "active"
        assert events[0].event_data["status"] == "suspended"

    async def test_creation_logged(self, session_factory, tenant_a):
        async with session_factory() as session:
            events = await AuditLogger(session).query_events(
                tenant_id=tenant_a.tenant_id, event_type=AuditEventType.TENANT_CREATED
            )

        assert [e.resource_id for e in events] == [str(tenant_a.tenant_id)]

"""FastAPI dependencies for API endpoints.

Authentication is handled upstream; the authenticated principal arrives
as headers:

    X-Actor-ID           id of the authenticated user or service (required)
    X-Tenant-ID          tenant the principal belongs to
    X-Actor-Role         tenant role (default: staff)
    X-Assumed-Tenant-ID  tenant a super admin is acting on
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, Request

from venuebook.booking.coordinator import BookingWriteCoordinator
from venuebook.core.context import RequestContext, Role
from venuebook.core.exceptions import TenantResolutionError
from venuebook.core.tenant import Principal, TenantContextResolver


def _parse_uuid(value: str | None, header: str) -> UUID | None:
    if value is None or value == "":
        return None
    try:
        return UUID(value)
    except ValueError:
        raise TenantResolutionError(f"Invalid {header} header: {value!r}") from None


def get_principal(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_tenant_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
    x_assumed_tenant_id: Annotated[str | None, Header()] = None,
) -> Principal:
    """Build the principal from the identity headers.

    Raises:
        TenantResolutionError: If a header is missing or malformed
    """
    actor_id = _parse_uuid(x_actor_id, "X-Actor-ID")
    if actor_id is None:
        raise TenantResolutionError("Missing X-Actor-ID header")

    try:
        role = Role(x_actor_role.lower()) if x_actor_role else Role.STAFF
    except ValueError:
        raise TenantResolutionError(f"Unknown role: {x_actor_role!r}") from None

    return Principal(
        actor_id=actor_id,
        tenant_id=_parse_uuid(x_tenant_id, "X-Tenant-ID"),
        role=role,
        assumed_tenant_id=_parse_uuid(x_assumed_tenant_id, "X-Assumed-Tenant-ID"),
    )


def get_resolver(request: Request) -> TenantContextResolver:
    return request.app.state.resolver


def get_coordinator(request: Request) -> BookingWriteCoordinator:
    return request.app.state.coordinator


async def get_request_context(
    principal: Annotated[Principal, Depends(get_principal)],
    resolver: Annotated[TenantContextResolver, Depends(get_resolver)],
) -> RequestContext:
    """Resolve the request's tenant scope; fails closed."""
    return await resolver.resolve(principal)


ContextDep = Annotated[RequestContext, Depends(get_request_context)]
CoordinatorDep = Annotated[BookingWriteCoordinator, Depends(get_coordinator)]

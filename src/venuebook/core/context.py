"""Request context for async-safe multi-tenant operations.

This module provides request context propagation using Python's contextvars.
The tenant id is still threaded explicitly through every core call; the
context variable only feeds logging and the storage-layer session variables.

Usage:
    from venuebook.core.context import create_context, request_context

    ctx = create_context(tenant_id=tenant_uuid, actor_id=user_uuid, role=Role.MANAGER)

    with request_context(ctx):
        result = await coordinator.create_booking(ctx, booking_input)
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_utils.compat import uuid7

from venuebook.core.exceptions import ContextNotSetError


class ActorType(str, Enum):
    """Type of actor performing the operation."""

    HUMAN = "human"  # Human user via UI or API
    SERVICE = "service"  # Internal service call
    SYSTEM = "system"  # Background job


class Role(str, Enum):
    """Tenant-level role of the principal."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    VIEWER = "viewer"


WRITE_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.MANAGER, Role.STAFF})


class RequestContext(BaseModel):
    """Resolved tenant scope for a single unit of work.

    Immutable once created: a unit of work never changes tenant.
    """

    # Identity
    request_id: UUID = Field(default_factory=uuid7)
    tenant_id: UUID
    actor_id: UUID
    actor_type: ActorType = ActorType.HUMAN
    role: Role = Role.STAFF

    # Audit
    correlation_id: UUID = Field(default_factory=uuid7)
    initiated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}

    @property
    def can_write(self) -> bool:
        """Whether the role may create or change bookings."""
        return self.role in WRITE_ROLES

    def to_audit_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for audit logging."""
        return {
            "request_id": str(self.request_id),
            "tenant_id": str(self.tenant_id),
            "actor_id": str(self.actor_id),
            "actor_type": self.actor_type.value,
            "role": self.role.value,
            "correlation_id": str(self.correlation_id),
            "initiated_at": self.initiated_at.isoformat(),
        }


# =============================================================================
# Context Variable Management
# =============================================================================

_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def get_current_context() -> RequestContext:
    """Get the current request context.

    Raises:
        ContextNotSetError: If no context is set in the current execution context
    """
    ctx = _request_context.get()
    if ctx is None:
        raise ContextNotSetError(
            "No request context is set. Use request_context() context manager."
        )
    return ctx


def get_current_context_or_none() -> RequestContext | None:
    """Get the current request context, or None if not set."""
    return _request_context.get()


def set_context(ctx: RequestContext) -> Token[RequestContext | None]:
    """Set the request context and return a token for restoration.

    This is a low-level API. Prefer using the request_context() context manager.
    """
    return _request_context.set(ctx)


def reset_context(token: Token[RequestContext | None]) -> None:
    """Reset the context to its previous value using a token."""
    _request_context.reset(token)


@contextmanager
def request_context(ctx: RequestContext):
    """Context manager for setting request context.

    Works for both sync and async code because contextvars are
    automatically propagated to async tasks.

    Args:
        ctx: The context to set for the duration of the block

    Yields:
        The context that was set
    """
    token = set_context(ctx)
    try:
        yield ctx
    finally:
        reset_context(token)


def create_context(
    *,
    tenant_id: UUID,
    actor_id: UUID,
    actor_type: ActorType = ActorType.HUMAN,
    role: Role = Role.STAFF,
    correlation_id: UUID | None = None,
) -> RequestContext:
    """Factory function to create a RequestContext with defaults.

    Args:
        tenant_id: Required tenant identifier
        actor_id: Required actor (user/service) identifier
        actor_type: Type of actor (default: HUMAN)
        role: Tenant-level role (default: STAFF)
        correlation_id: Optional correlation ID (auto-generated if not provided)

    Returns:
        A new RequestContext instance
    """
    return RequestContext(
        tenant_id=tenant_id,
        actor_id=actor_id,
        actor_type=actor_type,
        role=role,
        correlation_id=correlation_id or uuid7(),
    )

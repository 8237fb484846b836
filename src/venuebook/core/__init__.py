"""Core services: request context, tenant resolution, audit and errors."""

from .context import (
    ActorType,
    RequestContext,
    Role,
    create_context,
    get_current_context,
    get_current_context_or_none,
    request_context,
)
from .exceptions import (
    ConflictError,
    ContextNotSetError,
    InvalidStatusTransitionError,
    NotFoundError,
    RoleNotPermittedError,
    StorageFatalError,
    TenantNotFoundError,
    TenantResolutionError,
    TenantSuspendedError,
    TimeFormatError,
    TransactionRetryableError,
    ValidationError,
    WriteTimeoutError,
)

__all__ = [
    "ActorType",
    "RequestContext",
    "Role",
    "create_context",
    "get_current_context",
    "get_current_context_or_none",
    "request_context",
    "ConflictError",
    "ContextNotSetError",
    "InvalidStatusTransitionError",
    "NotFoundError",
    "RoleNotPermittedError",
    "StorageFatalError",
    "TenantNotFoundError",
    "TenantResolutionError",
    "TenantSuspendedError",
    "TimeFormatError",
    "TransactionRetryableError",
    "ValidationError",
    "WriteTimeoutError",
]

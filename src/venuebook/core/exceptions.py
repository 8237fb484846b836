"""Core exceptions for tenant resolution, validation and write coordination."""

from typing import TYPE_CHECKING
from uuid import UUID

from venuebook.utils.exceptions import VenueBookError

if TYPE_CHECKING:
    from venuebook.booking.types import ConflictRecord


class TenantResolutionError(VenueBookError):
    """Raised when the tenant for a unit of work cannot be established.

    Fatal for the request: nothing is read or written afterwards and the
    error is never retried automatically.

    Attributes:
        tenant_id: The tenant identifier that failed to resolve (if any)
    """

    def __init__(self, message: str, tenant_id: UUID | str | None = None):
        super().__init__(message)
        self.tenant_id = tenant_id

    def __str__(self) -> str:
        return f"TenantResolutionError: {self.args[0]}"


class ContextNotSetError(TenantResolutionError):
    """Raised when attempting to access request context that is not set.

    This error indicates a programming error - operations requiring context
    are being called outside of a request_context() context manager.
    """

    def __init__(self, message: str = "Request context is not set"):
        super().__init__(message)


class TenantNotFoundError(TenantResolutionError):
    """Raised when a tenant does not exist."""

    def __init__(self, tenant_id: UUID | str):
        super().__init__(f"Tenant not found: {tenant_id}", tenant_id=tenant_id)

    def __str__(self) -> str:
        return f"TenantNotFoundError: {self.args[0]}"


class TenantSuspendedError(TenantResolutionError):
    """Raised when attempting to use a suspended tenant."""

    def __init__(self, tenant_id: UUID | str):
        super().__init__(f"Tenant is suspended: {tenant_id}", tenant_id=tenant_id)

    def __str__(self) -> str:
        return f"TenantSuspendedError: {self.args[0]}"


class RoleNotPermittedError(TenantResolutionError):
    """Raised when the resolved role may not perform the operation."""

    def __init__(self, role: str, operation: str):
        super().__init__(f"Role '{role}' may not perform {operation}")
        self.role = role
        self.operation = operation

    def __str__(self) -> str:
        return f"RoleNotPermittedError: {self.args[0]}"


class ValidationError(VenueBookError):
    """Raised for malformed write input.

    Rejected before any conflict check runs.

    Attributes:
        field: Name of the offending input field (if known)
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        if self.field:
            return f"ValidationError({self.field}): {self.args[0]}"
        return f"ValidationError: {self.args[0]}"


class TimeFormatError(ValidationError):
    """Raised when a wall-clock time or calendar date cannot be parsed.

    Attributes:
        value: The raw value that failed to parse
    """

    def __init__(self, value: object, field: str | None = None):
        super().__init__(f"Unrecognised time value: {value!r}", field=field)
        self.value = value


class InvalidStatusTransitionError(ValidationError):
    """Raised when a booking status change is not allowed.

    Attributes:
        current: The booking's present status
        requested: The status that was asked for
    """

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move booking from '{current}' to '{requested}'", field="status"
        )
        self.current = current
        self.requested = requested


class NotFoundError(VenueBookError):
    """Raised when a booking or contract is not visible in the tenant.

    Rows belonging to other tenants are reported exactly like missing rows.

    Attributes:
        resource: Resource type ("booking", "contract")
        resource_id: The identifier that was looked up
    """

    def __init__(self, resource: str, resource_id: UUID | str):
        super().__init__(f"{resource.capitalize()} not found: {resource_id}")
        self.resource = resource
        self.resource_id = resource_id

    def __str__(self) -> str:
        return f"NotFoundError: {self.args[0]}"


class ConflictError(VenueBookError):
    """Raised when a write is rejected because of blocking overlaps.

    This is an expected business outcome, not a system fault. The full
    conflict set is carried as structured data; callers must never parse
    the message.

    Attributes:
        records: Every conflict found, blocking and advisory
    """

    def __init__(self, records: "list[ConflictRecord]", message: str | None = None):
        self.records = list(records)
        if message is None:
            message = (
                f"{len(self.blocking_records)} blocking conflict(s) across "
                f"{len({r.event_date for r in self.blocking_records})} date(s)"
            )
        super().__init__(message)

    @property
    def blocking_records(self) -> "list[ConflictRecord]":
        """Only the records that caused the rejection."""
        return [r for r in self.records if r.blocking]

    def __str__(self) -> str:
        return f"ConflictError: {self.args[0]}"


class TransactionRetryableError(VenueBookError):
    """Raised when a commit failed for a reason that a retry may clear.

    Serialization failures, deadlocks and exclusion-constraint violations.
    The coordinator retries these internally; callers only see this error
    once the retry budget is exhausted. ``WriteTimeoutError`` is the
    exception: it reaches the caller after one attempt.

    Attributes:
        reason: Short machine-readable cause ("serialization_failure", ...)
        attempts: Number of attempts made when surfaced to the caller
    """

    def __init__(self, message: str, reason: str = "retryable", attempts: int = 1):
        super().__init__(message)
        self.reason = reason
        self.attempts = attempts

    def __str__(self) -> str:
        return f"TransactionRetryableError({self.reason}): {self.args[0]}"


class WriteTimeoutError(TransactionRetryableError):
    """Raised when one write attempt exceeded its transaction timeout.

    The attempt has been rolled back in full. It is not retried internally
    because the commit may have landed on the server; the caller decides
    whether to resubmit.

    Attributes:
        timeout_seconds: The bound that was exceeded
    """

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Write did not complete within {timeout_seconds}s and was rolled back",
            reason="timeout",
        )
        self.timeout_seconds = timeout_seconds


class StorageFatalError(VenueBookError):
    """Raised for non-retryable storage failures such as connection loss.

    Surfaced as-is; the transaction has been rolled back.
    """

    def __init__(self, message: str, original: Exception | None = None):
        super().__init__(message)
        self.original = original

    def __str__(self) -> str:
        return f"StorageFatalError: {self.args[0]}"

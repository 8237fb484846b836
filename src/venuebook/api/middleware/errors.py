"""Error handling middleware for mapping exceptions to HTTP responses."""

from datetime import UTC, datetime
from typing import Callable
from uuid import UUID

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from venuebook.api.schemas.errors import APIError, ErrorCode
from venuebook.core.exceptions import (
    ConflictError,
    ContextNotSetError,
    NotFoundError,
    RoleNotPermittedError,
    StorageFatalError,
    TenantNotFoundError,
    TenantResolutionError,
    TenantSuspendedError,
    TransactionRetryableError,
    ValidationError,
)

logger = structlog.get_logger()

# Seconds a client should wait before resubmitting a retryable write.
RETRY_AFTER_SECONDS = 1


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware that catches exceptions and returns standardized error responses.

    Maps domain exceptions to HTTP status codes and formats all errors
    using the APIError schema. Conflicts carry the full conflict set as
    structured data in ``details.conflicts``.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        request_id = self._get_request_id(request)
        status_code, error_code, message, details = self._map_exception(exc)

        if status_code >= 500:
            logger.exception("request_failed", error_type=type(exc).__name__, path=request.url.path)

        error = APIError(
            error_code=error_code,
            message=message,
            details=details,
            request_id=request_id,
            timestamp=datetime.now(UTC),
        )

        headers = {"X-Request-ID": request_id}
        if isinstance(exc, TransactionRetryableError):
            headers["Retry-After"] = str(RETRY_AFTER_SECONDS)

        return JSONResponse(
            status_code=status_code,
            content=error.model_dump(mode="json"),
            headers=headers,
        )

    def _get_request_id(self, request: Request) -> str:
        if hasattr(request.state, "request_id"):
            rid = request.state.request_id
            return str(rid) if isinstance(rid, UUID) else rid
        return "unknown"

    def _map_exception(self, exc: Exception) -> tuple[int, str, str, dict | None]:
        """Map exception to (status_code, error_code, message, details)."""
        # Business outcome: the caller gets every conflict at once
        if isinstance(exc, ConflictError):
            return (
                409,
                ErrorCode.BOOKING_CONFLICT.value,
                str(exc),
                {"conflicts": [r.model_dump(mode="json") for r in exc.records]},
            )

        if isinstance(exc, ValidationError):
            return (
                422,
                ErrorCode.VALIDATION_ERROR.value,
                str(exc),
                {"field": exc.field} if exc.field else None,
            )

        if isinstance(exc, PydanticValidationError):
            return (
                422,
                ErrorCode.VALIDATION_ERROR.value,
                "Request validation failed",
                {"errors": exc.errors(include_url=False, include_context=False)},
            )

        if isinstance(exc, NotFoundError):
            return (
                404,
                ErrorCode.NOT_FOUND.value,
                str(exc),
                {"resource": exc.resource, "resource_id": str(exc.resource_id)},
            )

        # Tenant errors
        if isinstance(exc, TenantNotFoundError):
            return (
                404,
                ErrorCode.TENANT_NOT_FOUND.value,
                str(exc),
                {"tenant_id": str(exc.tenant_id)},
            )

        if isinstance(exc, TenantSuspendedError):
            return (
                403,
                ErrorCode.TENANT_SUSPENDED.value,
                str(exc),
                {"tenant_id": str(exc.tenant_id)},
            )

        if isinstance(exc, RoleNotPermittedError):
            return (403, ErrorCode.FORBIDDEN.value, str(exc), {"role": exc.role})

        if isinstance(exc, (ContextNotSetError, TenantResolutionError)):
            return (401, ErrorCode.UNAUTHORIZED.value, str(exc), None)

        # Storage errors
        if isinstance(exc, TransactionRetryableError):
            return (
                503,
                ErrorCode.SERVICE_UNAVAILABLE.value,
                "The write could not be completed; please retry",
                {"reason": exc.reason, "attempts": exc.attempts},
            )

        if isinstance(exc, StorageFatalError):
            return (500, ErrorCode.INTERNAL_ERROR.value, "Storage failure", None)

        return (
            500,
            ErrorCode.INTERNAL_ERROR.value,
            "Internal server error",
            {"type": type(exc).__name__} if self.debug else None,
        )

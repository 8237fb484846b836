"""Error response schemas for API."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Tenant resolution
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    TENANT_NOT_FOUND = "tenant_not_found"
    TENANT_SUSPENDED = "tenant_suspended"

    # Request errors
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    BOOKING_CONFLICT = "booking_conflict"

    # System errors
    INTERNAL_ERROR = "internal_error"
    SERVICE_UNAVAILABLE = "service_unavailable"


class APIError(BaseModel):
    """Standardized API error response format.

    All API errors return this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None, description="Additional error context"
    )
    request_id: str = Field(..., description="Request ID for tracing (UUIDv7)")
    timestamp: datetime = Field(..., description="When the error occurred")

    model_config = {"json_schema_extra": {"example": {
        "error_code": "booking_conflict",
        "message": "ConflictError: 1 blocking conflict(s) across 1 date(s)",
        "details": {"conflicts": [{
            "event_date": "2025-06-01",
            "space_id": "01234567-89ab-7def-8123-456789abcdef",
            "conflicting_booking_id": "019478f2-1234-7000-8000-abcdef123456",
            "conflicting_status": "confirmed_deposit_paid",
            "blocking": True,
            "start_time": "18:00",
            "end_time": "22:00",
            "event_name": "Wedding reception",
            "customer_name": "Jordan Lee",
        }]},
        "request_id": "019478f2-1234-7000-8000-abcdef123456",
        "timestamp": "2026-01-30T12:00:00Z",
    }}}

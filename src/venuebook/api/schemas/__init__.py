"""API schemas."""

from .booking import (
    AvailabilityResponse,
    BookingResponse,
    CancelRequest,
    ContractMembersRequest,
    ContractResponse,
    ContractStatusRequest,
    WriteResponse,
)
from .errors import APIError, ErrorCode
from .health import ComponentHealth, HealthDetailResponse, HealthResponse, HealthStatus

__all__ = [
    "APIError",
    "AvailabilityResponse",
    "BookingResponse",
    "CancelRequest",
    "ComponentHealth",
    "ContractMembersRequest",
    "ContractResponse",
    "ContractStatusRequest",
    "ErrorCode",
    "HealthDetailResponse",
    "HealthResponse",
    "HealthStatus",
    "WriteResponse",
]

"""Request and response schemas for bookings, contracts and availability.

Request bodies for creating and editing bookings reuse the engine's own
input models (``venuebook.booking.types``); this module only adds the
HTTP-specific wrappers and the response shapes.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from venuebook.booking.status import normalize_status
from venuebook.booking.timeslots import format_minutes
from venuebook.booking.types import ConflictRecord, ContractMemberInput, ContractView, WriteResult
from venuebook.db.models.booking import Booking, BookingStatus

DataT = TypeVar("DataT")


class CancelRequest(BaseModel):
    """Body of a cancel call."""

    reason: str | None = Field(default=None, max_length=100)
    note: str | None = None


class ContractMembersRequest(BaseModel):
    """Full replacement member set for a contract."""

    members: list[ContractMemberInput]


class ContractStatusRequest(BaseModel):
    """Target booking status for every live member of a contract."""

    status: BookingStatus

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: object) -> BookingStatus:
        return normalize_status(value)


class BookingResponse(BaseModel):
    """A stored booking."""

    id: UUID
    contract_id: UUID | None
    customer_id: UUID | None
    venue_id: UUID | None
    space_id: UUID | None
    event_name: str
    event_type: str | None
    event_date: date
    start_time: str
    end_time: str
    status: str
    guest_count: int
    total_amount: Decimal
    deposit_amount: Decimal | None
    notes: str | None
    cancellation_reason: str | None
    cancellation_note: str | None
    cancelled_at: datetime | None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            contract_id=booking.contract_id,
            customer_id=booking.customer_id,
            venue_id=booking.venue_id,
            space_id=booking.space_id,
            event_name=booking.event_name,
            event_type=booking.event_type,
            event_date=booking.event_date,
            start_time=format_minutes(booking.start_minute),
            end_time=format_minutes(booking.end_minute),
            status=booking.status,
            guest_count=booking.guest_count,
            total_amount=booking.total_amount,
            deposit_amount=booking.deposit_amount,
            notes=booking.notes,
            cancellation_reason=booking.cancellation_reason,
            cancellation_note=booking.cancellation_note,
            cancelled_at=booking.cancelled_at,
        )


class ContractResponse(BaseModel):
    """A contract with all of its member bookings."""

    id: UUID
    customer_id: UUID
    contract_name: str
    status: str
    total_amount: Decimal
    bookings: list[BookingResponse]

    @classmethod
    def from_view(cls, view: ContractView) -> "ContractResponse":
        contract = view.contract
        return cls(
            id=contract.id,
            customer_id=contract.customer_id,
            contract_name=contract.contract_name,
            status=contract.status,
            total_amount=contract.total_amount,
            bookings=[BookingResponse.from_booking(b) for b in view.bookings],
        )


class WriteResponse(BaseModel, Generic[DataT]):
    """A committed write with any advisory overlaps."""

    data: DataT
    warnings: list[ConflictRecord] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    """Result of an availability check."""

    available: bool = Field(..., description="False if any overlap is blocking")
    conflicts: list[ConflictRecord]


def booking_write_response(result: WriteResult[Booking]) -> WriteResponse[BookingResponse]:
    return WriteResponse[BookingResponse](
        data=BookingResponse.from_booking(result.value), warnings=result.warnings
    )


def contract_write_response(
    result: WriteResult[ContractView],
) -> WriteResponse[ContractResponse]:
    return WriteResponse[ContractResponse](
        data=ContractResponse.from_view(result.value), warnings=result.warnings
    )

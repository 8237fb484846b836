"""Value types exchanged with the booking engine."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from venuebook.booking.status import normalize_status
from venuebook.booking.timeslots import TimeSlot, format_minutes, parse_event_date, parse_time
from venuebook.db.models.booking import Booking, BookingStatus, Contract, ContractStatus

T = TypeVar("T")

_MONEY_QUANTUM = Decimal("0.01")


class WriteState(str, Enum):
    """States a single write request passes through."""

    VALIDATING = "validating"
    REJECTED = "rejected"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class ConflictRecord(BaseModel):
    """One overlap between a proposed slot and an existing or co-submitted one.

    ``conflicting_booking_id`` is None when the clash is between two
    members of the same request.
    """

    event_date: date
    space_id: UUID
    conflicting_booking_id: UUID | None
    conflicting_status: BookingStatus
    blocking: bool
    start_time: str
    end_time: str
    event_name: str | None = None
    customer_name: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_booking(
        cls, booking: Booking, *, blocking: bool, customer_name: str | None = None
    ) -> "ConflictRecord":
        return cls(
            event_date=booking.event_date,
            space_id=booking.space_id,
            conflicting_booking_id=booking.id,
            conflicting_status=normalize_status(booking.status),
            blocking=blocking,
            start_time=format_minutes(booking.start_minute),
            end_time=format_minutes(booking.end_minute),
            event_name=booking.event_name,
            customer_name=customer_name,
        )


def _canonical_time(value: Any, info_field: str, *, end_of_day: bool = False) -> Any:
    if value is None:
        return value
    return format_minutes(parse_time(value, field=info_field, end_of_day=end_of_day))


def _money(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return value.quantize(_MONEY_QUANTUM)


class BookingInput(BaseModel):
    """A single booking as submitted by the caller.

    Times are normalised to "HH:MM" on construction; malformed values
    raise ``TimeFormatError`` rather than a pydantic error.
    """

    space_id: UUID | None = None
    venue_id: UUID | None = None
    customer_id: UUID | None = None
    event_name: str = Field(min_length=1, max_length=500)
    event_type: str | None = None
    event_date: date
    start_time: str
    end_time: str
    status: BookingStatus = BookingStatus.INQUIRY
    guest_count: int = Field(default=0, ge=0)
    total_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    deposit_amount: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator("event_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> date:
        return parse_event_date(value)

    @field_validator("start_time", mode="before")
    @classmethod
    def _parse_start(cls, value: Any) -> str:
        return _canonical_time(value, "start_time")

    @field_validator("end_time", mode="before")
    @classmethod
    def _parse_end(cls, value: Any) -> str:
        return _canonical_time(value, "end_time", end_of_day=True)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> BookingStatus:
        return normalize_status(value)

    @field_validator("total_amount", "deposit_amount")
    @classmethod
    def _quantize(cls, value: Decimal | None) -> Decimal | None:
        return _money(value)

    @model_validator(mode="after")
    def _check_slot(self) -> "BookingInput":
        # Raises ValidationError when start >= end.
        self.slot  # noqa: B018
        return self

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot.from_times(self.start_time, self.end_time)


class ContractMemberInput(BookingInput):
    """A member booking of a contract.

    ``id`` names an existing member to update in place; members without
    an ``id`` are inserted.
    """

    id: UUID | None = None


class ContractInput(BaseModel):
    """A new contract with its initial member bookings."""

    contract_name: str = Field(min_length=1, max_length=500)
    customer_id: UUID
    status: ContractStatus = ContractStatus.DRAFT
    members: list[ContractMemberInput] = Field(default_factory=list)


class BookingUpdate(BaseModel):
    """Partial edit of a single booking.

    Only fields explicitly provided are applied; ``space_id=None`` given
    explicitly unassigns the space.
    """

    space_id: UUID | None = None
    venue_id: UUID | None = None
    event_name: str | None = Field(default=None, min_length=1, max_length=500)
    event_type: str | None = None
    event_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    status: BookingStatus | None = None
    guest_count: int | None = Field(default=None, ge=0)
    total_amount: Decimal | None = Field(default=None, ge=0)
    deposit_amount: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator("event_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> date | None:
        return None if value is None else parse_event_date(value)

    @field_validator("start_time", mode="before")
    @classmethod
    def _parse_start(cls, value: Any) -> str | None:
        return _canonical_time(value, "start_time")

    @field_validator("end_time", mode="before")
    @classmethod
    def _parse_end(cls, value: Any) -> str | None:
        return _canonical_time(value, "end_time", end_of_day=True)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> BookingStatus | None:
        return None if value is None else normalize_status(value)

    @field_validator("total_amount", "deposit_amount")
    @classmethod
    def _quantize(cls, value: Decimal | None) -> Decimal | None:
        return _money(value)

    def provided(self) -> dict[str, Any]:
        """The explicitly provided fields and their values."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class AvailabilityQuery(BaseModel):
    """Read-only availability check across one or more spaces."""

    space_ids: list[UUID | None] = Field(default_factory=list)
    event_date: date
    start_time: str
    end_time: str
    exclude_booking_id: UUID | None = None

    @field_validator("event_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> date:
        return parse_event_date(value)

    @field_validator("start_time", mode="before")
    @classmethod
    def _parse_start(cls, value: Any) -> str:
        return _canonical_time(value, "start_time")

    @field_validator("end_time", mode="before")
    @classmethod
    def _parse_end(cls, value: Any) -> str:
        return _canonical_time(value, "end_time", end_of_day=True)

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot.from_times(self.start_time, self.end_time)


@dataclass(frozen=True)
class SlotClaim:
    """A slot a write wants to hold, used for conflict checks.

    Attributes:
        space_id: Space being claimed (None claims nothing)
        event_date: Calendar date
        slot: Time interval
        status: Status the booking will have after the write
        event_name: Name shown in conflict records
        booking_id: Existing booking being re-checked (None for new rows)
    """

    space_id: UUID | None
    event_date: date
    slot: TimeSlot
    status: BookingStatus
    event_name: str | None = None
    booking_id: UUID | None = None


@dataclass
class ContractView:
    """A contract with its member bookings (cancelled members included)."""

    contract: Contract
    bookings: list[Booking] = field(default_factory=list)

    @property
    def live_bookings(self) -> list[Booking]:
        return [b for b in self.bookings if not b.is_cancelled]


@dataclass
class WriteResult(Generic[T]):
    """Outcome of a committed write: the value plus advisory conflicts."""

    value: T
    warnings: list[ConflictRecord] = field(default_factory=list)

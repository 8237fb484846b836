"""Booking conflict detection and multi-date contract consistency."""

from .conflicts import ConflictChecker, find_intra_request_conflicts, find_overlaps
from .contract import ContractAggregate
from .coordinator import BookingWriteCoordinator, classify_storage_error
from .status import (
    ADVISORY_STATUSES,
    BLOCKING_STATUSES,
    StatusPolicy,
    assert_transition,
    can_transition,
    is_advisory,
    is_blocking,
    normalize_status,
)
from .timeslots import TimeSlot, format_minutes, parse_event_date, parse_time
from .types import (
    AvailabilityQuery,
    BookingInput,
    BookingUpdate,
    ConflictRecord,
    ContractInput,
    ContractMemberInput,
    ContractView,
    SlotClaim,
    WriteResult,
    WriteState,
)

__all__ = [
    "ADVISORY_STATUSES",
    "BLOCKING_STATUSES",
    "AvailabilityQuery",
    "BookingInput",
    "BookingUpdate",
    "BookingWriteCoordinator",
    "ConflictChecker",
    "ConflictRecord",
    "ContractAggregate",
    "ContractInput",
    "ContractMemberInput",
    "ContractView",
    "SlotClaim",
    "StatusPolicy",
    "TimeSlot",
    "WriteResult",
    "WriteState",
    "assert_transition",
    "can_transition",
    "classify_storage_error",
    "find_intra_request_conflicts",
    "find_overlaps",
    "format_minutes",
    "is_advisory",
    "is_blocking",
    "normalize_status",
    "parse_event_date",
    "parse_time",
]

"""Booking status policy.

Classifies statuses for the overlap decision and guards status
transitions.

Blocking statuses hold their slot: any overlap with them rejects the
write. Advisory (provisional) statuses do not reserve the slot: an
overlap with them is reported but the write proceeds. Cancelled bookings
are never conflict candidates at all.
"""

from dataclasses import dataclass

from venuebook.core.exceptions import InvalidStatusTransitionError, ValidationError
from venuebook.db.models.booking import BookingStatus

BLOCKING_STATUSES = frozenset(
    {
        BookingStatus.CONFIRMED_DEPOSIT_PAID,
        BookingStatus.CONFIRMED_FULLY_PAID,
        BookingStatus.COMPLETED,
    }
)

ADVISORY_STATUSES = frozenset(
    {
        BookingStatus.INQUIRY,
        BookingStatus.PENDING,
        BookingStatus.TENTATIVE,
    }
)

CONFIRMED_STATUSES = frozenset(
    {BookingStatus.CONFIRMED_DEPOSIT_PAID, BookingStatus.CONFIRMED_FULLY_PAID}
)

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

# Older clients still send these.
LEGACY_ALIASES = {
    "confirmed": BookingStatus.TENTATIVE,
    "proposal_shared": BookingStatus.PENDING,
    "cancelled_refunded": BookingStatus.CANCELLED,
}

# Forward order of the non-terminal lifecycle.
_LIFECYCLE = (
    BookingStatus.INQUIRY,
    BookingStatus.PENDING,
    BookingStatus.TENTATIVE,
    BookingStatus.CONFIRMED_DEPOSIT_PAID,
    BookingStatus.CONFIRMED_FULLY_PAID,
)


def _build_transitions() -> dict[BookingStatus, frozenset[BookingStatus]]:
    table: dict[BookingStatus, frozenset[BookingStatus]] = {}
    for index, status in enumerate(_LIFECYCLE):
        allowed = set(_LIFECYCLE[index + 1 :]) | {BookingStatus.CANCELLED}
        if status in CONFIRMED_STATUSES:
            allowed.add(BookingStatus.COMPLETED)
        table[status] = frozenset(allowed)
    table[BookingStatus.COMPLETED] = frozenset()
    table[BookingStatus.CANCELLED] = frozenset()
    return table


TRANSITIONS = _build_transitions()


def normalize_status(value: str | BookingStatus, *, field: str = "status") -> BookingStatus:
    """Map a raw status (including legacy aliases) to a BookingStatus.

    Raises:
        ValidationError: If the status is unknown
    """
    if isinstance(value, BookingStatus):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Unknown booking status: {value!r}", field=field)
    key = value.strip().lower()
    if key in LEGACY_ALIASES:
        return LEGACY_ALIASES[key]
    try:
        return BookingStatus(key)
    except ValueError:
        raise ValidationError(f"Unknown booking status: {value!r}", field=field) from None


def is_blocking(status: str | BookingStatus) -> bool:
    return normalize_status(status) in BLOCKING_STATUSES


def is_advisory(status: str | BookingStatus) -> bool:
    return normalize_status(status) in ADVISORY_STATUSES


def can_transition(current: str | BookingStatus, new: str | BookingStatus) -> bool:
    """Whether a booking may move from ``current`` to ``new``.

    Staying in the same status is always allowed.
    """
    current, new = normalize_status(current), normalize_status(new)
    return current == new or new in TRANSITIONS[current]


def assert_transition(current: str | BookingStatus, new: str | BookingStatus) -> BookingStatus:
    """Return the normalised target status, raising if the move is not allowed.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    target = normalize_status(new)
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(normalize_status(current).value, target.value)
    return target


@dataclass(frozen=True)
class StatusPolicy:
    """Decides whether a detected overlap blocks a write.

    Attributes:
        inquiry_overlap_blocks: Also block when both the existing and the
            proposed booking are provisional. Off by default: two
            provisional holds on one slot are reported, not rejected.
    """

    inquiry_overlap_blocks: bool = False

    def is_blocking_overlap(
        self,
        existing_status: str | BookingStatus,
        proposed_status: str | BookingStatus | None = None,
    ) -> bool:
        existing = normalize_status(existing_status)
        if existing in BLOCKING_STATUSES:
            return True
        if self.inquiry_overlap_blocks and existing in ADVISORY_STATUSES:
            return proposed_status is None or normalize_status(proposed_status) in ADVISORY_STATUSES
        return False

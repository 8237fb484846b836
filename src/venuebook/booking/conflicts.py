"""Interval overlap checking.

Candidates are loaded per ``(tenant, space, date)`` and the half-open
overlap predicate is evaluated in memory. Checks fan out across spaces
and across the members of a multi-booking request, and always return the
complete conflict set.
"""

from collections.abc import Collection, Iterable, Sequence
from datetime import date
from itertools import combinations
from uuid import UUID

import structlog

from venuebook.booking.status import StatusPolicy
from venuebook.booking.timeslots import TimeSlot
from venuebook.booking.types import ConflictRecord, SlotClaim
from venuebook.db.models.booking import Booking, BookingStatus
from venuebook.db.repositories.booking import BookingRepository

logger = structlog.get_logger()


def find_overlaps(slot: TimeSlot, candidates: Iterable[Booking]) -> list[Booking]:
    """Candidates whose interval overlaps ``slot``. Pure."""
    return [
        booking
        for booking in candidates
        if slot.overlaps(TimeSlot(booking.start_minute, booking.end_minute))
    ]


def find_intra_request_conflicts(claims: Sequence[SlotClaim]) -> list[ConflictRecord]:
    """Overlaps between claims submitted together.

    Two members of one request can never hold the same space at the same
    time, so every such clash is blocking. One record is produced per
    claim involved, describing the claim it collides with.
    """
    records: list[ConflictRecord] = []
    for first, second in combinations(claims, 2):
        if first.space_id is None or first.space_id != second.space_id:
            continue
        if first.event_date != second.event_date or not first.slot.overlaps(second.slot):
            continue
        for other in (second, first):
            records.append(
                ConflictRecord(
                    event_date=other.event_date,
                    space_id=other.space_id,
                    conflicting_booking_id=None,
                    conflicting_status=other.status,
                    blocking=True,
                    start_time=other.slot.start_time,
                    end_time=other.slot.end_time,
                    event_name=other.event_name,
                )
            )
    return records


class ConflictChecker:
    """Checks proposed slots against the bookings stored for a tenant."""

    def __init__(self, bookings: BookingRepository, policy: StatusPolicy | None = None):
        self.bookings = bookings
        self.policy = policy or StatusPolicy()

    async def check_conflicts(
        self,
        tenant_id: UUID,
        space_ids: UUID | None | Sequence[UUID | None],
        event_date: date,
        slot: TimeSlot,
        *,
        exclude_booking_ids: Collection[UUID] = (),
        proposed_status: BookingStatus | None = None,
        contract_id: UUID | None = None,
    ) -> list[ConflictRecord]:
        """Every stored booking overlapping ``slot`` on ``event_date``.

        Args:
            tenant_id: Tenant whose bookings are considered; no other tenant's
                rows are ever loaded
            space_ids: One space or several; ``None`` entries never conflict
            event_date: Calendar date
            slot: Proposed interval
            exclude_booking_ids: Bookings to ignore (the booking being edited)
            proposed_status: Status the proposed booking will have
            contract_id: Contract the proposed booking belongs to; overlaps
                with its own siblings are always blocking

        Returns:
            Conflict records ordered by space, then start time
        """
        if space_ids is None or isinstance(space_ids, UUID):
            space_ids = [space_ids]

        overlaps: list[tuple[Booking, bool]] = []
        seen: set[UUID] = set()
        for space_id in space_ids:
            if space_id is None or space_id in seen:
                continue
            seen.add(space_id)

            candidates = await self.bookings.find_candidates(
                tenant_id, space_id, event_date, exclude_ids=exclude_booking_ids
            )
            for booking in find_overlaps(slot, candidates):
                blocking = (
                    contract_id is not None and booking.contract_id == contract_id
                ) or self.policy.is_blocking_overlap(booking.status, proposed_status)
                overlaps.append((booking, blocking))

        names = await self.bookings.customer_names(
            tenant_id, {b.customer_id for b, _ in overlaps if b.customer_id is not None}
        )
        return [
            ConflictRecord.from_booking(
                booking, blocking=blocking, customer_name=names.get(booking.customer_id)
            )
            for booking, blocking in overlaps
        ]

    async def check_claims(
        self,
        tenant_id: UUID,
        claims: Sequence[SlotClaim],
        *,
        exclude_booking_ids: Collection[UUID] = (),
        contract_id: UUID | None = None,
    ) -> list[ConflictRecord]:
        """Check several claims against storage and against each other.

        Every claim is checked; nothing short-circuits on the first
        blocking conflict.
        """
        records: list[ConflictRecord] = []
        for claim in claims:
            excluded = set(exclude_booking_ids)
            if claim.booking_id is not None:
                excluded.add(claim.booking_id)
            records.extend(
                await self.check_conflicts(
                    tenant_id,
                    claim.space_id,
                    claim.event_date,
                    claim.slot,
                    exclude_booking_ids=excluded,
                    proposed_status=claim.status,
                    contract_id=contract_id,
                )
            )
        records.extend(find_intra_request_conflicts(claims))

        advisory = [r for r in records if not r.blocking]
        if advisory:
            logger.warning(
                "advisory_overlaps_found",
                tenant_id=str(tenant_id),
                count=len(advisory),
                dates=sorted({r.event_date.isoformat() for r in advisory}),
            )
        return records

"""Unit tests for the in-memory overlap functions."""

from datetime import date

from uuid_utils.compat import uuid7

from venuebook.booking.conflicts import find_intra_request_conflicts, find_overlaps
from venuebook.booking.timeslots import TimeSlot
from venuebook.booking.types import ConflictRecord, SlotClaim
from venuebook.db.models.booking import Booking, BookingStatus

EVENT_DATE = date(2026, 6, 12)


def _booking(start: int, end: int, status: str = "confirmed_deposit_paid") -> Booking:
    return Booking(
        id=uuid7(),
        tenant_id=uuid7(),
        space_id=uuid7(),
        event_name="Existing",
        event_date=EVENT_DATE,
        start_minute=start,
        end_minute=end,
        status=status,
    )


def _claim(space_id, start: int, end: int, **kwargs) -> SlotClaim:
    return SlotClaim(
        space_id=space_id,
        event_date=kwargs.pop("event_date", EVENT_DATE),
        slot=TimeSlot(start, end),
        status=kwargs.pop("status", BookingStatus.TENTATIVE),
        **kwargs,
    )


class TestFindOverlaps:
    """Tests for find_overlaps."""

    def test_returns_only_overlapping(self):
        evening = _booking(1080, 1320)  # 18:00-22:00
        morning = _booking(540, 720)  # 09:00-12:00
        late = _booking(1320, 1380)  # 22:00-23:00

        result = find_overlaps(TimeSlot(1200, 1380), [evening, morning, late])

        assert result == [evening, late]

    def test_touching_is_not_overlap(self):
        evening = _booking(1080, 1320)

        assert find_overlaps(TimeSlot(1320, 1380), [evening]) == []

    def test_empty_candidates(self):
        assert find_overlaps(TimeSlot(0, 60), []) == []


class TestIntraRequestConflicts:
    """Tests for find_intra_request_conflicts."""

    def test_same_space_same_date_overlap(self):
        space = uuid7()
        claims = [
            _claim(space, 1080, 1320, event_name="Dinner"),
            _claim(space, 1200, 1380, event_name="Party"),
        ]

        records = find_intra_request_conflicts(claims)

        assert len(records) == 2
        assert all(r.blocking for r in records)
        assert all(r.conflicting_booking_id is None for r in records)
        assert {r.event_name for r in records} == {"Dinner", "Party"}

    def test_different_spaces_do_not_conflict(self):
        claims = [_claim(uuid7(), 1080, 1320), _claim(uuid7(), 1080, 1320)]

        assert find_intra_request_conflicts(claims) == []

    def test_different_dates_do_not_conflict(self):
        space = uuid7()
        claims = [
            _claim(space, 1080, 1320),
            _claim(space, 1080, 1320, event_date=date(2026, 6, 13)),
        ]

        assert find_intra_request_conflicts(claims) == []

    def test_unassigned_space_never_conflicts(self):
        claims = [_claim(None, 1080, 1320), _claim(None, 1080, 1320)]

        assert find_intra_request_conflicts(claims) == []

    def test_every_pair_reported(self):
        space = uuid7()
        claims = [_claim(space, 600, 900), _claim(space, 700, 800), _claim(space, 850, 950)]

        records = find_intra_request_conflicts(claims)

        # (0,1) and (0,2) overlap; (1,2) are disjoint.
        assert len(records) == 4


class TestConflictRecord:
    """Tests for ConflictRecord construction."""

    def test_from_booking(self):
        booking = _booking(1080, 1320, status="confirmed")

        record = ConflictRecord.from_booking(booking, blocking=False)

        assert record.conflicting_booking_id == booking.id
        assert record.conflicting_status == BookingStatus.TENTATIVE
        assert record.start_time == "18:00"
        assert record.end_time == "22:00"
        assert record.event_date == EVENT_DATE
        assert record.customer_name is None

    def test_serializes_to_json(self):
        record = ConflictRecord.from_booking(
            _booking(1080, 1320), blocking=True, customer_name="Jordan Lee"
        )

        data = record.model_dump(mode="json")

        assert data["blocking"] is True
        assert data["event_date"] == "2026-06-12"
        assert data["conflicting_status"] == "confirmed_deposit_paid"
        assert data["customer_name"] == "Jordan Lee"

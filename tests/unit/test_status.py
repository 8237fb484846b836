"""Unit tests for the booking status policy."""

import pytest

from venuebook.booking.status import (
    ADVISORY_STATUSES,
    BLOCKING_STATUSES,
    StatusPolicy,
    assert_transition,
    can_transition,
    is_advisory,
    is_blocking,
    normalize_status,
)
from venuebook.core.exceptions import InvalidStatusTransitionError, ValidationError
from venuebook.db.models.booking import BookingStatus


class TestClassification:
    """Tests for blocking/advisory classification."""

    @pytest.mark.parametrize(
        "status", ["confirmed_deposit_paid", "confirmed_fully_paid", "completed"]
    )
    def test_blocking(self, status):
        assert is_blocking(status)
        assert not is_advisory(status)

    @pytest.mark.parametrize("status", ["inquiry", "pending", "tentative"])
    def test_advisory(self, status):
        assert is_advisory(status)
        assert not is_blocking(status)

    def test_cancelled_is_neither(self):
        assert not is_blocking(BookingStatus.CANCELLED)
        assert not is_advisory(BookingStatus.CANCELLED)

    def test_sets_are_disjoint(self):
        assert not BLOCKING_STATUSES & ADVISORY_STATUSES


class TestNormalizeStatus:
    """Tests for normalize_status."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("confirmed", BookingStatus.TENTATIVE),
            ("proposal_shared", BookingStatus.PENDING),
            ("cancelled_refunded", BookingStatus.CANCELLED),
            ("  Confirmed_Deposit_Paid ", BookingStatus.CONFIRMED_DEPOSIT_PAID),
            (BookingStatus.COMPLETED, BookingStatus.COMPLETED),
        ],
    )
    def test_aliases_and_case(self, raw, expected):
        assert normalize_status(raw) == expected

    def test_legacy_confirmed_is_not_blocking(self):
        """Test the old "confirmed" label maps to a provisional status."""
        assert not is_blocking("confirmed")

    @pytest.mark.parametrize("raw", ["booked", "", None, 3])
    def test_unknown_status(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            normalize_status(raw)

        assert exc_info.value.field == "status"


class TestTransitions:
    """Tests for status transitions."""

    @pytest.mark.parametrize(
        "current,new",
        [
            ("inquiry", "pending"),
            ("inquiry", "confirmed_deposit_paid"),
            ("pending", "tentative"),
            ("tentative", "confirmed_fully_paid"),
            ("confirmed_deposit_paid", "confirmed_fully_paid"),
            ("confirmed_deposit_paid", "completed"),
            ("confirmed_fully_paid", "completed"),
            ("tentative", "cancelled"),
            ("confirmed_fully_paid", "cancelled"),
            ("tentative", "tentative"),
        ],
    )
    def test_allowed(self, current, new):
        assert can_transition(current, new)
        assert assert_transition(current, new) == normalize_status(new)

    @pytest.mark.parametrize(
        "current,new",
        [
            ("pending", "inquiry"),
            ("confirmed_fully_paid", "confirmed_deposit_paid"),
            ("tentative", "completed"),
            ("inquiry", "completed"),
            ("completed", "cancelled"),
            ("cancelled", "inquiry"),
            ("cancelled", "confirmed_deposit_paid"),
        ],
    )
    def test_refused(self, current, new):
        assert not can_transition(current, new)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            assert_transition(current, new)

        assert exc_info.value.current == normalize_status(current).value
        assert exc_info.value.requested == normalize_status(new).value

    def test_alias_transition(self):
        """Test aliases are resolved before the transition check."""
        assert assert_transition("proposal_shared", "confirmed") == BookingStatus.TENTATIVE


class TestStatusPolicy:
    """Tests for StatusPolicy.is_blocking_overlap."""

    def test_blocking_existing_always_blocks(self):
        policy = StatusPolicy()

        for proposed in ("inquiry", "tentative", "confirmed_fully_paid", None):
            assert policy.is_blocking_overlap("confirmed_deposit_paid", proposed)

    def test_advisory_existing_never_blocks_by_default(self):
        policy = StatusPolicy()

        assert not policy.is_blocking_overlap("inquiry", "inquiry")
        assert not policy.is_blocking_overlap("tentative", "confirmed_fully_paid")

    def test_inquiry_overlap_blocks_switch(self):
        """Test the switch makes provisional-vs-provisional overlaps block."""
        policy = StatusPolicy(inquiry_overlap_blocks=True)

        assert policy.is_blocking_overlap("inquiry", "pending")
        assert policy.is_blocking_overlap("tentative", None)
        # A confirmed booking may still displace a provisional hold.
        assert not policy.is_blocking_overlap("tentative", "confirmed_deposit_paid")

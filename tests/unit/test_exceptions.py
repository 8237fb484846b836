"""Unit tests for core exceptions."""

from datetime import date

from uuid_utils.compat import uuid7

from venuebook.booking.types import ConflictRecord
from venuebook.core.exceptions import (
    ConflictError,
    ContextNotSetError,
    InvalidStatusTransitionError,
    NotFoundError,
    RoleNotPermittedError,
    StorageFatalError,
    TenantNotFoundError,
    TenantResolutionError,
    TenantSuspendedError,
    TimeFormatError,
    TransactionRetryableError,
    ValidationError,
    WriteTimeoutError,
)
from venuebook.db.models.booking import BookingStatus
from venuebook.utils.exceptions import VenueBookError


def _record(blocking: bool, day: int = 12) -> ConflictRecord:
    return ConflictRecord(
        event_date=date(2026, 6, day),
        space_id=uuid7(),
        conflicting_booking_id=uuid7(),
        conflicting_status=(
            BookingStatus.CONFIRMED_DEPOSIT_PAID if blocking else BookingStatus.INQUIRY
        ),
        blocking=blocking,
        start_time="18:00",
        end_time="22:00",
    )


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    def test_all_are_venuebook_errors(self):
        errors = [
            TenantResolutionError("x"),
            ContextNotSetError(),
            ValidationError("x"),
            NotFoundError("booking", uuid7()),
            ConflictError([]),
            TransactionRetryableError("x"),
            StorageFatalError("x"),
        ]
        for error in errors:
            assert isinstance(error, VenueBookError)

    def test_tenant_errors_are_resolution_errors(self):
        assert isinstance(TenantNotFoundError(uuid7()), TenantResolutionError)
        assert isinstance(TenantSuspendedError(uuid7()), TenantResolutionError)
        assert isinstance(RoleNotPermittedError("viewer", "create_booking"), TenantResolutionError)
        assert isinstance(ContextNotSetError(), TenantResolutionError)

    def test_input_errors_are_validation_errors(self):
        assert isinstance(TimeFormatError("x"), ValidationError)
        assert isinstance(InvalidStatusTransitionError("completed", "inquiry"), ValidationError)

    def test_timeout_is_retryable(self):
        error = WriteTimeoutError(2.5)

        assert isinstance(error, TransactionRetryableError)
        assert error.reason == "timeout"
        assert error.timeout_seconds == 2.5

    def test_conflict_is_not_a_storage_error(self):
        assert not isinstance(ConflictError([]), (TransactionRetryableError, StorageFatalError))


class TestConflictError:
    """Tests for ConflictError."""

    def test_carries_every_record(self):
        records = [_record(True, 12), _record(False, 12), _record(True, 13)]

        error = ConflictError(records)

        assert error.records == records
        assert len(error.blocking_records) == 2
        assert "2 blocking conflict(s) across 2 date(s)" in str(error)

    def test_custom_message(self):
        error = ConflictError([_record(True)], message="Slot taken")

        assert str(error) == "ConflictError: Slot taken"


class TestMessages:
    """Tests for error string formats."""

    def test_validation_error_with_field(self):
        assert str(ValidationError("bad", field="end_time")) == "ValidationError(end_time): bad"

    def test_validation_error_without_field(self):
        assert str(ValidationError("bad")) == "ValidationError: bad"

    def test_not_found(self):
        booking_id = uuid7()
        error = NotFoundError("booking", booking_id)

        assert error.resource == "booking"
        assert error.resource_id == booking_id
        assert str(booking_id) in str(error)

    def test_transition_error(self):
        error = InvalidStatusTransitionError("completed", "inquiry")

        assert error.field == "status"
        assert error.current == "completed"
        assert error.requested == "inquiry"

    def test_role_not_permitted(self):
        error = RoleNotPermittedError("viewer", "cancel_contract")

        assert error.role == "viewer"
        assert "cancel_contract" in str(error)

    def test_retryable_defaults(self):
        error = TransactionRetryableError("again", reason="serialization_failure")

        assert error.attempts == 1
        assert "serialization_failure" in str(error)

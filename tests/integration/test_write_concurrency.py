"""Integration tests for concurrent writes, retries and timeouts."""

import asyncio

import pytest
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.booking.conflicts import ConflictChecker
from venuebook.booking.coordinator import BookingWriteCoordinator
from venuebook.booking.types import ContractInput
from venuebook.config.settings import WriteCoordinatorConfig
from venuebook.core.audit import AuditLogger
from venuebook.core.exceptions import (
    ConflictError,
    StorageFatalError,
    TransactionRetryableError,
    WriteTimeoutError,
)
from venuebook.db.models.audit import AuditEventType
from venuebook.db.repositories.booking import BookingRepository


class SerializationFailure(Exception):
    """Stand-in driver error carrying SQLSTATE 40001."""

    sqlstate = "40001"


class UniqueViolation(Exception):
    """Stand-in driver error carrying SQLSTATE 23505."""

    sqlstate = "23505"


def _driver_error(orig: Exception) -> DBAPIError:
    return DBAPIError("INSERT INTO bookings", {}, orig)


class TestConcurrentWrites:
    """Two overlapping writes racing for one slot."""

    async def test_only_one_booking_wins(self, coordinator, ctx, tenant_a, make_booking):
        attempts = [
            coordinator.create_booking(
                ctx, make_booking(tenant_a.space.id, start, end, "confirmed_deposit_paid")
            )
            for start, end in (("18:00", "22:00"), ("20:00", "23:00"))
        ]

        results = await asyncio.gather(*attempts, return_exceptions=True)

        committed = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, ConflictError)]
        assert len(committed) == 1
        assert len(rejected) == 1
        assert len(await coordinator.list_bookings(ctx)) == 1

    async def test_only_one_contract_wins(self, coordinator, ctx, tenant_a, make_member):
        def contract(name: str) -> ContractInput:
            return ContractInput(
                contract_name=name,
                customer_id=tenant_a.customer.id,
                members=[
                    make_member(tenant_a.spaces[1].id, "2026-06-11", "09:00", "12:00"),
                    make_member(
                        tenant_a.space.id, "2026-06-12", "18:00", "22:00",
                        status="confirmed_deposit_paid",
                    ),
                ],
            )

        results = await asyncio.gather(
            coordinator.create_contract(ctx, contract("First")),
            coordinator.create_contract(ctx, contract("Second")),
            return_exceptions=True,
        )

        assert sum(isinstance(r, ConflictError) for r in results) == 1
        contracts = await coordinator.list_contracts(ctx)
        assert len(contracts) == 1
        # The loser left no partial members behind.
        assert len(await coordinator.list_bookings(ctx)) == 2

    async def test_many_writers(self, coordinator, ctx, tenant_a, make_booking):
        results = await asyncio.gather(
            *(
                coordinator.create_booking(
                    ctx, make_booking(tenant_a.space.id, "18:00", "22:00", "confirmed_fully_paid")
                )
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        assert sum(not isinstance(r, BaseException) for r in results) == 1
        assert sum(isinstance(r, ConflictError) for r in results) == 4


class TestRetry:
    """Retry of retryable storage failures."""

    async def test_backoff_uses_current_tenacity_keywords(
        self, coordinator, ctx, tenant_a, make_booking, recwarn
    ):
        await coordinator.create_booking(ctx, make_booking(tenant_a.space.id))

        assert not [w for w in recwarn if "tenacity" in w.filename or "initial" in str(w.message)]

    async def test_serialization_failure_is_retried(
        self, coordinator, session_factory, ctx, tenant_a, make_booking, monkeypatch
    ):
        original_add = BookingRepository.add
        calls = 0

        async def flaky_add(self, obj):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise _driver_error(SerializationFailure("could not serialize access"))
            return await original_add(self, obj)

        monkeypatch.setattr(BookingRepository, "add", flaky_add)

        result = await coordinator.create_booking(ctx, make_booking(tenant_a.space.id))

        assert calls == 2
        assert [b.id for b in await coordinator.list_bookings(ctx)] == [result.value.id]
        async with session_factory() as session:
            events = await AuditLogger(session).query_events(
                tenant_id=tenant_a.tenant_id, event_type=AuditEventType.BOOKING_CREATED
            )
        assert len(events) == 1

    async def test_retry_budget_exhausted(
        self, coordinator, ctx, tenant_a, make_booking, monkeypatch
    ):
        calls = 0

        async def always_fails(self, obj):
            nonlocal calls
            calls += 1
            raise _driver_error(SerializationFailure("could not serialize access"))

        monkeypatch.setattr(BookingRepository, "add", always_fails)

        with pytest.raises(TransactionRetryableError) as exc_info:
            await coordinator.create_booking(ctx, make_booking(tenant_a.space.id))

        assert calls == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.reason == "serialization_failure"
        assert await coordinator.list_bookings(ctx) == []

    async def test_fatal_error_not_retried(
        self, coordinator, ctx, tenant_a, make_booking, monkeypatch
    ):
        calls = 0

        async def duplicate(self, obj):
            nonlocal calls
            calls += 1
            raise _driver_error(UniqueViolation("duplicate key value"))

        monkeypatch.setattr(BookingRepository, "add", duplicate)

        with pytest.raises(StorageFatalError):
            await coordinator.create_booking(ctx, make_booking(tenant_a.space.id))

        assert calls == 1

    async def test_conflict_not_retried(
        self, coordinator, ctx, tenant_a, make_booking, monkeypatch
    ):
        await coordinator.create_booking(
            ctx, make_booking(tenant_a.space.id, status="confirmed_fully_paid")
        )
        original = ConflictChecker.check_claims
        calls = 0

        async def counting(self, *args, **kwargs):
            nonlocal calls
            calls += 1
            return await original(self, *args, **kwargs)

        monkeypatch.setattr(ConflictChecker, "check_claims", counting)

        with pytest.raises(ConflictError):
            await coordinator.create_booking(ctx, make_booking(tenant_a.space.id))

        assert calls == 1


class TestTimeout:
    """Per-attempt transaction timeout."""

    @pytest.fixture
    def slow_coordinator(self, session_factory) -> BookingWriteCoordinator:
        return BookingWriteCoordinator(
            session_factory,
            WriteCoordinatorConfig(
                timeout_seconds=0.05,
                max_attempts=3,
                backoff_initial_seconds=0.001,
                backoff_max_seconds=0.01,
            ),
        )

    async def test_slow_attempt_rolls_back_without_retry(
        self, slow_coordinator, ctx, tenant_a, make_booking, monkeypatch
    ):
        original = ConflictChecker.check_claims
        calls = 0

        async def slow(self, *args, **kwargs):
            nonlocal calls
            calls += 1
            records = await original(self, *args, **kwargs)
            await asyncio.sleep(0.5)
            return records

        monkeypatch.setattr(ConflictChecker, "check_claims", slow)

        with pytest.raises(WriteTimeoutError) as exc_info:
            await slow_coordinator.create_booking(ctx, make_booking(tenant_a.space.id))

        assert exc_info.value.attempts == 1
        assert exc_info.value.reason == "timeout"
        assert calls == 1
        monkeypatch.undo()
        assert await slow_coordinator.list_bookings(ctx) == []

    async def test_timeout_after_commit_writes_once(
        self, slow_coordinator, ctx, tenant_a, make_booking, monkeypatch
    ):
        """Test a deadline firing after COMMIT landed does not rerun the write."""
        original = AsyncSession.commit

        async def commit_then_stall(self):
            await original(self)
            await asyncio.sleep(0.5)

        monkeypatch.setattr(AsyncSession, "commit", commit_then_stall)

        with pytest.raises(WriteTimeoutError):
            await slow_coordinator.create_booking(
                ctx, make_booking(tenant_a.space.id, status="inquiry")
            )

        monkeypatch.undo()
        bookings = await slow_coordinator.list_bookings(ctx)
        assert len(bookings) == 1
        assert bookings[0].status == "inquiry"

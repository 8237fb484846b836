"""Booking/contract write coordinator.

Every write funnels through ``BookingWriteCoordinator``. One attempt is a
single transaction that validates input, runs every overlap check,
rejects on blocking conflicts and otherwise writes all rows together.
Serialization failures, deadlocks and exclusion-constraint violations
roll the attempt back and rerun the whole validate-then-commit cycle with
backoff. A timed-out attempt is rolled back and surfaced at once: the
deadline may fire after the server applied COMMIT, and a rerun would then
write the rows a second time.

Per request the write moves through
``validating -> rejected | committing -> committed | rolled_back``;
``rejected`` and ``rolled_back`` leave storage untouched.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar
from uuid import UUID

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from venuebook.booking.conflicts import ConflictChecker
from venuebook.booking.contract import (
    ContractAggregate,
    booking_summary,
    cancel_booking_row,
    new_booking,
)
from venuebook.booking.status import (
    BLOCKING_STATUSES,
    StatusPolicy,
    assert_transition,
    normalize_status,
)
from venuebook.booking.timeslots import TimeSlot, parse_time
from venuebook.booking.types import (
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
from venuebook.config.settings import WriteCoordinatorConfig
from venuebook.core.audit import AuditLogger
from venuebook.core.context import RequestContext, request_context
from venuebook.core.exceptions import (
    ConflictError,
    NotFoundError,
    RoleNotPermittedError,
    StorageFatalError,
    TransactionRetryableError,
    ValidationError,
    WriteTimeoutError,
)
from venuebook.db.models.audit import AuditEventType
from venuebook.db.models.booking import Booking, BookingStatus, Contract, ContractStatus
from venuebook.db.repositories.booking import BookingRepository
from venuebook.db.repositories.contract import ContractRepository
from venuebook.db.repositories.directory import DirectoryRepository
from venuebook.db.session import tenant_transaction

logger = structlog.get_logger()

T = TypeVar("T")

# SQLSTATEs for which rerunning the whole transaction can succeed.
RETRYABLE_SQLSTATES = {
    "40001": "serialization_failure",
    "40P01": "deadlock_detected",
    "23P01": "exclusion_violation",
}

_SLOT_UPDATE_FIELDS = {"space_id", "event_date", "start_time", "end_time"}
_REQUIRED_EDIT_FIELDS = frozenset({"event_name", "guest_count", "total_amount"})
_OPTIONAL_EDIT_FIELDS = frozenset({"event_type", "deposit_amount", "notes"})


def classify_storage_error(exc: DBAPIError) -> TransactionRetryableError | StorageFatalError:
    """Map a driver error raised inside a write transaction to the error taxonomy."""
    if exc.connection_invalidated:
        return StorageFatalError("Database connection lost", original=exc)

    sqlstate = _sqlstate(exc)
    if sqlstate in RETRYABLE_SQLSTATES:
        return TransactionRetryableError(
            f"Transaction aborted ({sqlstate}); safe to retry",
            reason=RETRYABLE_SQLSTATES[sqlstate],
        )

    message = str(exc.orig) if exc.orig is not None else str(exc)
    if "database is locked" in message or "database table is locked" in message:
        return TransactionRetryableError("Database is locked", reason="database_locked")

    return StorageFatalError(f"Storage error: {message}", original=exc)


def _sqlstate(exc: DBAPIError) -> str | None:
    # asyncpg surfaces the code on the adapted error or its cause; psycopg as pgcode.
    candidates = [exc.orig, getattr(exc.orig, "__cause__", None)]
    for candidate in candidates:
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if isinstance(code, str):
                return code
    return None


@dataclass
class _Unit:
    """Repositories and helpers bound to one attempt's session."""

    session: AsyncSession
    bookings: BookingRepository
    contracts: ContractRepository
    directory: DirectoryRepository
    checker: ConflictChecker
    aggregate: ContractAggregate
    audit: AuditLogger


class BookingWriteCoordinator:
    """Transaction boundary for booking and contract writes.

    Args:
        session_factory: Factory for sessions bound to the booking database
        config: Retry, timeout, isolation and policy settings
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: WriteCoordinatorConfig | None = None,
    ):
        self.session_factory = session_factory
        self.config = config or WriteCoordinatorConfig()
        self.policy = StatusPolicy(inquiry_overlap_blocks=self.config.inquiry_overlap_blocks)

    # =========================================================================
    # Reads
    # =========================================================================

    async def check_availability(
        self, ctx: RequestContext, query: AvailabilityQuery
    ) -> list[ConflictRecord]:
        """All overlaps (blocking and advisory) for a prospective slot."""

        async def work(unit: _Unit) -> list[ConflictRecord]:
            exclude = [query.exclude_booking_id] if query.exclude_booking_id else []
            return await unit.checker.check_conflicts(
                ctx.tenant_id,
                query.space_ids,
                query.event_date,
                query.slot,
                exclude_booking_ids=exclude,
            )

        return await self._read(ctx, work)

    async def get_booking(self, ctx: RequestContext, booking_id: UUID) -> Booking:
        async def work(unit: _Unit) -> Booking:
            return await self._get_booking(unit, ctx, booking_id)

        return await self._read(ctx, work)

    async def list_bookings(self, ctx: RequestContext, **filters: Any) -> list[Booking]:
        async def work(unit: _Unit) -> list[Booking]:
            return await unit.bookings.list_filtered(ctx.tenant_id, **filters)

        return await self._read(ctx, work)

    async def get_contract(self, ctx: RequestContext, contract_id: UUID) -> ContractView:
        async def work(unit: _Unit) -> ContractView:
            contract = await self._get_contract(unit, ctx, contract_id)
            return await unit.aggregate.load(ctx.tenant_id, contract)

        return await self._read(ctx, work)

    async def list_contracts(
        self,
        ctx: RequestContext,
        *,
        customer_id: UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ContractView]:
        async def work(unit: _Unit) -> list[ContractView]:
            if customer_id is not None:
                contracts = await unit.contracts.list_by_customer(ctx.tenant_id, customer_id)
            else:
                contracts = await unit.contracts.list(ctx.tenant_id, limit=limit, offset=offset)
            return [await unit.aggregate.load(ctx.tenant_id, c) for c in contracts]

        return await self._read(ctx, work)

    # =========================================================================
    # Single bookings
    # =========================================================================

    async def create_booking(
        self, ctx: RequestContext, data: BookingInput
    ) -> WriteResult[Booking]:
        """Create a standalone booking.

        Raises:
            ValidationError: For unknown references or a cancelled status
            ConflictError: If the slot overlaps a blocking booking
        """

        async def work(unit: _Unit) -> WriteResult[Booking]:
            if data.status == BookingStatus.CANCELLED:
                raise ValidationError("A booking cannot be created cancelled", field="status")
            if data.customer_id is not None:
                await self._require_customer(unit, ctx, data.customer_id)
            resolved = await self._resolve_references(unit, ctx, data)

            records = await unit.checker.check_claims(
                ctx.tenant_id, [self._claim(resolved)]
            )
            self._reject_blocking(records)

            booking = new_booking(ctx.tenant_id, resolved)
            await unit.bookings.add(booking)
            await unit.audit.record(
                ctx, AuditEventType.BOOKING_CREATED, "booking", booking.id, booking_summary(booking)
            )
            return WriteResult(booking, self._advisory(records))

        return await self._write("create_booking", ctx, work)

    async def update_booking(
        self, ctx: RequestContext, booking_id: UUID, changes: BookingUpdate
    ) -> WriteResult[Booking]:
        """Edit a single booking.

        Slot changes and promotions to a blocking status are re-checked
        against every other booking; the booking's own prior slot is
        excluded. A contract member's edit recomputes the contract total.
        """

        async def work(unit: _Unit) -> WriteResult[Booking]:
            booking = await self._get_booking(unit, ctx, booking_id, for_update=True)
            provided = {
                k: v for k, v in changes.provided().items() if k != "status" or v is not None
            }
            if not provided:
                return WriteResult(booking)

            if booking.is_cancelled:
                raise ValidationError("Cancelled bookings cannot be edited", field="status")
            for name in _REQUIRED_EDIT_FIELDS & provided.keys():
                if provided[name] is None:
                    raise ValidationError(f"{name} cannot be cleared", field=name)

            target = booking.status
            if "status" in provided:
                target = assert_transition(booking.status, provided["status"]).value
                if target == BookingStatus.CANCELLED.value:
                    raise ValidationError(
                        "Use the cancel operation to cancel a booking", field="status"
                    )

            slot_changed = bool(_SLOT_UPDATE_FIELDS & provided.keys())
            if slot_changed and booking.status == BookingStatus.COMPLETED.value:
                raise ValidationError(
                    "A completed booking's slot cannot change", field="event_date"
                )

            space_id = provided.get("space_id", booking.space_id)
            venue_id = provided.get("venue_id", booking.venue_id)
            event_date = provided.get("event_date") or booking.event_date
            start = provided.get("start_time") or booking.start_minute
            end = provided.get("end_time") or booking.end_minute
            slot = TimeSlot(
                parse_time(start, field="start_time"),
                parse_time(end, field="end_time", end_of_day=True),
            )
            if "space_id" in provided or "venue_id" in provided:
                venue_id = await self._check_space(unit, ctx, space_id, venue_id)

            promoted = (
                normalize_status(target) in BLOCKING_STATUSES
                and normalize_status(booking.status) not in BLOCKING_STATUSES
            )
            records: list[ConflictRecord] = []
            if slot_changed or promoted:
                records = await unit.checker.check_claims(
                    ctx.tenant_id,
                    [
                        SlotClaim(
                            space_id=space_id,
                            event_date=event_date,
                            slot=slot,
                            status=normalize_status(target),
                            event_name=provided.get("event_name") or booking.event_name,
                            booking_id=booking.id,
                        )
                    ],
                    contract_id=booking.contract_id,
                )
                self._reject_blocking(records)

            before = booking_summary(booking)
            booking.space_id = space_id
            booking.venue_id = venue_id
            booking.event_date = event_date
            booking.start_minute = slot.start_minute
            booking.end_minute = slot.end_minute
            booking.status = target
            for name in _REQUIRED_EDIT_FIELDS | _OPTIONAL_EDIT_FIELDS:
                if name not in provided:
                    continue
                setattr(booking, name, provided[name])
            await unit.session.flush()

            if booking.contract_id is not None:
                contract = await self._get_contract(unit, ctx, booking.contract_id)
                await unit.aggregate.recompute_total(ctx.tenant_id, contract)

            await unit.audit.record(
                ctx,
                AuditEventType.BOOKING_UPDATED,
                "booking",
                booking.id,
                {"before": before, "after": booking_summary(booking), "fields": sorted(provided)},
            )
            return WriteResult(booking, self._advisory(records))

        return await self._write("update_booking", ctx, work)

    async def cancel_booking(
        self,
        ctx: RequestContext,
        booking_id: UUID,
        *,
        reason: str | None = None,
        note: str | None = None,
    ) -> WriteResult[Booking]:
        """Soft-cancel a booking.

        Idempotent: cancelling a cancelled booking returns it unchanged and
        writes nothing. Cancelling the last live member of a contract
        cancels the contract too.
        """

        async def work(unit: _Unit) -> WriteResult[Booking]:
            booking = await self._get_booking(unit, ctx, booking_id, for_update=True)
            if not cancel_booking_row(booking, actor_id=ctx.actor_id, reason=reason, note=note):
                return WriteResult(booking)
            await unit.session.flush()

            await unit.audit.record(
                ctx,
                AuditEventType.BOOKING_CANCELLED,
                "booking",
                booking.id,
                {"reason": reason, "note": note, **booking_summary(booking)},
            )
            if booking.contract_id is not None:
                contract = await self._get_contract(unit, ctx, booking.contract_id)
                await unit.aggregate.after_member_change(ctx, contract)
            return WriteResult(booking)

        return await self._write("cancel_booking", ctx, work)

    # =========================================================================
    # Contracts
    # =========================================================================

    async def create_contract(
        self, ctx: RequestContext, data: ContractInput
    ) -> WriteResult[ContractView]:
        """Create a contract and all of its member bookings atomically.

        Every member is checked before anything is written; a single
        blocking conflict anywhere rejects the whole contract.
        """

        async def work(unit: _Unit) -> WriteResult[ContractView]:
            if not data.members:
                raise ValidationError(
                    "A contract needs at least one member booking", field="members"
                )
            for member in data.members:
                if member.id is not None:
                    raise ValidationError("New contract members cannot carry an id", field="id")
                if member.status == BookingStatus.CANCELLED:
                    raise ValidationError("A member cannot be created cancelled", field="status")
            await self._require_customer(unit, ctx, data.customer_id)
            members = [await self._resolve_references(unit, ctx, m) for m in data.members]

            records = await unit.checker.check_claims(
                ctx.tenant_id, [self._claim(m) for m in members]
            )
            self._reject_blocking(records)

            view = await unit.aggregate.create(ctx, data.model_copy(update={"members": members}))
            return WriteResult(view, self._advisory(records))

        return await self._write("create_contract", ctx, work)

    async def update_contract(
        self,
        ctx: RequestContext,
        contract_id: UUID,
        members: list[ContractMemberInput],
    ) -> WriteResult[ContractView]:
        """Replace a contract's member set atomically.

        The new set is checked as a whole: the contract's current members
        are excluded from the storage check (they are being replaced) and
        the new members are checked against each other.
        """

        async def work(unit: _Unit) -> WriteResult[ContractView]:
            contract = await self._get_contract(unit, ctx, contract_id, for_update=True)
            if contract.status == ContractStatus.CANCELLED.value:
                raise ValidationError("A cancelled contract cannot be edited", field="contract_id")
            if not members:
                raise ValidationError(
                    "A contract needs at least one member booking", field="members"
                )

            existing = await unit.bookings.list_for_contract(ctx.tenant_id, contract.id)
            by_id = {b.id: b for b in existing}
            seen: set[UUID] = set()
            for member in members:
                if member.id is None:
                    if member.status == BookingStatus.CANCELLED:
                        raise ValidationError("A member cannot be added cancelled", field="status")
                    continue
                current = by_id.get(member.id)
                if current is None or current.is_cancelled:
                    raise ValidationError(
                        f"Booking {member.id} is not a live member of this contract", field="id"
                    )
                if member.id in seen:
                    raise ValidationError(f"Booking {member.id} is listed twice", field="id")
                seen.add(member.id)
                if "status" in member.model_fields_set:
                    assert_transition(current.status, member.status)
                    if member.status == BookingStatus.CANCELLED:
                        raise ValidationError(
                            "Omit a member to remove it from the contract", field="status"
                        )
                if current.status == BookingStatus.COMPLETED.value and self._slot_differs(
                    current, member
                ):
                    raise ValidationError(
                        "A completed booking's slot cannot change", field="event_date"
                    )

            resolved = [await self._resolve_references(unit, ctx, m) for m in members]
            claims = [
                self._claim(m, status=self._effective_status(m, by_id)) for m in resolved
            ]
            records = await unit.checker.check_claims(
                ctx.tenant_id, claims, exclude_booking_ids=by_id.keys()
            )
            self._reject_blocking(records)

            view = await unit.aggregate.replace_members(ctx, contract, existing, resolved)
            return WriteResult(view, self._advisory(records))

        return await self._write("update_contract", ctx, work)

    async def update_contract_status(
        self,
        ctx: RequestContext,
        contract_id: UUID,
        status: BookingStatus | str,
    ) -> WriteResult[ContractView]:
        """Move every live member of a contract to ``status`` atomically.

        Promotion to a blocking status re-checks every member that is not
        already blocking. Cancelling is delegated to ``cancel_contract``.
        """
        target = normalize_status(status)
        if target == BookingStatus.CANCELLED:
            return await self.cancel_contract(ctx, contract_id)

        async def work(unit: _Unit) -> WriteResult[ContractView]:
            contract = await self._get_contract(unit, ctx, contract_id, for_update=True)
            if contract.status == ContractStatus.CANCELLED.value:
                raise ValidationError("A cancelled contract cannot change status", field="status")
            all_members = await unit.bookings.list_for_contract(ctx.tenant_id, contract.id)
            live = [b for b in all_members if not b.is_cancelled]
            for booking in live:
                assert_transition(booking.status, target)

            records: list[ConflictRecord] = []
            if target in BLOCKING_STATUSES:
                promoted = [
                    b for b in live if normalize_status(b.status) not in BLOCKING_STATUSES
                ]
                claims = [
                    SlotClaim(
                        space_id=b.space_id,
                        event_date=b.event_date,
                        slot=TimeSlot(b.start_minute, b.end_minute),
                        status=target,
                        event_name=b.event_name,
                        booking_id=b.id,
                    )
                    for b in promoted
                ]
                records = await unit.checker.check_claims(
                    ctx.tenant_id,
                    claims,
                    exclude_booking_ids=[b.id for b in all_members],
                )
                self._reject_blocking(records)

            view = await unit.aggregate.set_member_status(ctx, contract, live, target)
            return WriteResult(view, self._advisory(records))

        return await self._write("update_contract_status", ctx, work)

    async def cancel_contract(
        self,
        ctx: RequestContext,
        contract_id: UUID,
        *,
        reason: str | None = None,
        note: str | None = None,
    ) -> WriteResult[ContractView]:
        """Cancel a contract and every live member. Idempotent."""

        async def work(unit: _Unit) -> WriteResult[ContractView]:
            contract = await self._get_contract(unit, ctx, contract_id, for_update=True)
            view = await unit.aggregate.cancel(ctx, contract, reason=reason, note=note)
            return WriteResult(view)

        return await self._write("cancel_contract", ctx, work)

    # =========================================================================
    # Transaction handling
    # =========================================================================

    async def _write(
        self,
        operation: str,
        ctx: RequestContext,
        work: Callable[[_Unit], Awaitable[WriteResult[T]]],
    ) -> WriteResult[T]:
        if not ctx.can_write:
            raise RoleNotPermittedError(ctx.role.value, operation)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_exponential_jitter(
                multiplier=self.config.backoff_initial_seconds,
                max=self.config.backoff_max_seconds,
            ),
            retry=(
                retry_if_exception_type(TransactionRetryableError)
                & retry_if_not_exception_type(WriteTimeoutError)
            ),
            before_sleep=self._log_retry(operation),
            reraise=True,
        )
        with request_context(ctx):
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(
                        operation, ctx, work, attempt.retry_state.attempt_number
                    )
        raise AssertionError("unreachable")  # pragma: no cover

    async def _attempt(
        self,
        operation: str,
        ctx: RequestContext,
        work: Callable[[_Unit], Awaitable[WriteResult[T]]],
        attempt: int,
    ) -> WriteResult[T]:
        log = logger.bind(operation=operation, attempt=attempt)
        log.debug("write_validating", state=WriteState.VALIDATING.value)
        try:
            async with asyncio.timeout(self.config.timeout_seconds):
                async with self._transaction(ctx) as session:
                    result = await work(self._unit(session))
                    log.debug("write_committing", state=WriteState.COMMITTING.value)
        except ConflictError as exc:
            log.info(
                "write_rejected",
                state=WriteState.REJECTED.value,
                blocking=len(exc.blocking_records),
                conflicts=len(exc.records),
            )
            raise
        except (ValidationError, NotFoundError) as exc:
            log.info("write_rejected", state=WriteState.REJECTED.value, error=str(exc))
            raise
        except TimeoutError:
            error = WriteTimeoutError(self.config.timeout_seconds)
            error.attempts = attempt
            log.warning("write_rolled_back", state=WriteState.ROLLED_BACK.value, reason="timeout")
            raise error from None
        except DBAPIError as exc:
            error = classify_storage_error(exc)
            log.warning(
                "write_rolled_back",
                state=WriteState.ROLLED_BACK.value,
                reason=getattr(error, "reason", "fatal"),
                error=str(error),
            )
            if isinstance(error, TransactionRetryableError):
                error.attempts = attempt
            raise error from exc

        log.info(
            "write_committed",
            state=WriteState.COMMITTED.value,
            warnings=len(result.warnings),
        )
        return result

    def _log_retry(self, operation: str) -> Callable[[RetryCallState], None]:
        def before_sleep(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "write_retrying",
                operation=operation,
                attempt=retry_state.attempt_number,
                reason=getattr(exc, "reason", None),
                sleep_seconds=round(retry_state.next_action.sleep, 3)
                if retry_state.next_action
                else None,
            )

        return before_sleep

    async def _read(self, ctx: RequestContext, work: Callable[[_Unit], Awaitable[T]]) -> T:
        with request_context(ctx):
            try:
                async with self._transaction(ctx) as session:
                    return await work(self._unit(session))
            except DBAPIError as exc:
                raise classify_storage_error(exc) from exc

    def _transaction(self, ctx: RequestContext):
        return tenant_transaction(
            self.session_factory,
            ctx,
            self.config.isolation_level,
            set_rls=self.config.set_rls_session_variables,
        )

    def _unit(self, session: AsyncSession) -> _Unit:
        bookings = BookingRepository(session)
        return _Unit(
            session=session,
            bookings=bookings,
            contracts=ContractRepository(session),
            directory=DirectoryRepository(session),
            checker=ConflictChecker(bookings, self.policy),
            aggregate=ContractAggregate(
                session, allow_empty_contract=self.config.allow_empty_contract
            ),
            audit=AuditLogger(session),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _reject_blocking(records: list[ConflictRecord]) -> None:
        if any(r.blocking for r in records):
            raise ConflictError(records)

    @staticmethod
    def _advisory(records: list[ConflictRecord]) -> list[ConflictRecord]:
        return [r for r in records if not r.blocking]

    @staticmethod
    def _claim(data: BookingInput, status: BookingStatus | None = None) -> SlotClaim:
        return SlotClaim(
            space_id=data.space_id,
            event_date=data.event_date,
            slot=data.slot,
            status=status or data.status,
            event_name=data.event_name,
            booking_id=getattr(data, "id", None),
        )

    @staticmethod
    def _effective_status(
        member: ContractMemberInput, existing: dict[UUID, Booking]
    ) -> BookingStatus:
        if member.id is not None and "status" not in member.model_fields_set:
            return normalize_status(existing[member.id].status)
        return member.status

    @staticmethod
    def _slot_differs(booking: Booking, member: ContractMemberInput) -> bool:
        slot = member.slot
        return (
            booking.space_id != member.space_id
            or booking.event_date != member.event_date
            or booking.start_minute != slot.start_minute
            or booking.end_minute != slot.end_minute
        )

    async def _get_booking(
        self, unit: _Unit, ctx: RequestContext, booking_id: UUID, *, for_update: bool = False
    ) -> Booking:
        booking = await unit.bookings.get(ctx.tenant_id, booking_id, for_update=for_update)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        return booking

    async def _get_contract(
        self, unit: _Unit, ctx: RequestContext, contract_id: UUID, *, for_update: bool = False
    ) -> Contract:
        contract = await unit.contracts.get(ctx.tenant_id, contract_id, for_update=for_update)
        if contract is None:
            raise NotFoundError("contract", contract_id)
        return contract

    async def _require_customer(self, unit: _Unit, ctx: RequestContext, customer_id: UUID) -> None:
        if not await unit.directory.customer_exists(ctx.tenant_id, customer_id):
            raise ValidationError(f"Unknown customer: {customer_id}", field="customer_id")

    async def _check_space(
        self,
        unit: _Unit,
        ctx: RequestContext,
        space_id: UUID | None,
        venue_id: UUID | None,
    ) -> UUID | None:
        """Confirm space/venue belong to the tenant; returns the effective venue id."""
        if space_id is not None:
            space = await unit.directory.get_space(ctx.tenant_id, space_id)
            if space is None:
                raise ValidationError(f"Unknown space: {space_id}", field="space_id")
            if venue_id is not None and venue_id != space.venue_id:
                raise ValidationError(
                    f"Space {space_id} is not part of venue {venue_id}", field="venue_id"
                )
            return space.venue_id
        if venue_id is not None and not await unit.directory.venue_exists(ctx.tenant_id, venue_id):
            raise ValidationError(f"Unknown venue: {venue_id}", field="venue_id")
        return venue_id

    async def _resolve_references(
        self, unit: _Unit, ctx: RequestContext, data: BookingInput
    ) -> Any:
        """Validate references and fill in the venue from the space."""
        venue_id = await self._check_space(unit, ctx, data.space_id, data.venue_id)
        if venue_id == data.venue_id:
            return data
        return data.model_copy(update={"venue_id": venue_id})

"""Contract aggregate.

A contract and its member bookings are always written together inside
the caller's transaction: the contract row is flushed before any member
that references it, members are diffed against the submitted set, and the
contract total is recomputed from live members after every change. A
contract is never left without live members unless configured to allow
it; removing the last one cancels the contract.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.booking.status import CONFIRMED_STATUSES, assert_transition
from venuebook.booking.types import (
    BookingInput,
    ContractInput,
    ContractMemberInput,
    ContractView,
)
from venuebook.core.audit import AuditLogger
from venuebook.core.context import RequestContext
from venuebook.core.exceptions import ValidationError
from venuebook.db.models.audit import AuditEventType
from venuebook.db.models.booking import Booking, BookingStatus, Contract, ContractStatus
from venuebook.db.repositories.booking import BookingRepository
from venuebook.db.repositories.contract import ContractRepository

logger = structlog.get_logger()

ZERO = Decimal("0.00")
REMOVED_FROM_CONTRACT = "removed_from_contract"
CONTRACT_CANCELLED = "contract_cancelled"

_EDITABLE_FIELDS = (
    "event_name",
    "event_type",
    "guest_count",
    "total_amount",
    "deposit_amount",
    "notes",
)


def new_booking(
    tenant_id: UUID,
    data: BookingInput,
    *,
    contract_id: UUID | None = None,
    customer_id: UUID | None = None,
) -> Booking:
    """Build an unsaved Booking row from validated input."""
    slot = data.slot
    return Booking(
        tenant_id=tenant_id,
        contract_id=contract_id,
        customer_id=customer_id or data.customer_id,
        venue_id=data.venue_id,
        space_id=data.space_id,
        event_name=data.event_name,
        event_type=data.event_type,
        event_date=data.event_date,
        start_minute=slot.start_minute,
        end_minute=slot.end_minute,
        status=data.status.value,
        guest_count=data.guest_count,
        total_amount=data.total_amount,
        deposit_amount=data.deposit_amount,
        notes=data.notes,
    )


def cancel_booking_row(
    booking: Booking,
    *,
    actor_id: UUID | None,
    reason: str | None = None,
    note: str | None = None,
    at: datetime | None = None,
) -> bool:
    """Soft-cancel a booking row in place.

    Returns:
        False if it was already cancelled (nothing changed)
    """
    if booking.is_cancelled:
        return False
    assert_transition(booking.status, BookingStatus.CANCELLED)
    booking.status = BookingStatus.CANCELLED.value
    booking.cancellation_reason = reason
    booking.cancellation_note = note
    booking.cancelled_at = at or datetime.now(UTC)
    booking.cancelled_by = actor_id
    return True


def booking_summary(booking: Booking) -> dict[str, Any]:
    """JSON-safe snapshot of a booking for audit payloads."""
    return {
        "booking_id": str(booking.id),
        "contract_id": str(booking.contract_id) if booking.contract_id else None,
        "space_id": str(booking.space_id) if booking.space_id else None,
        "event_date": booking.event_date.isoformat(),
        "start_minute": booking.start_minute,
        "end_minute": booking.end_minute,
        "status": booking.status,
        "total_amount": str(booking.total_amount),
    }


class ContractAggregate:
    """Owns the member set of contracts within one transaction.

    Conflict checks are the caller's job; the aggregate assumes the member
    set it is given has already been validated.
    """

    def __init__(self, session: AsyncSession, *, allow_empty_contract: bool = False):
        self.session = session
        self.contracts = ContractRepository(session)
        self.bookings = BookingRepository(session)
        self.audit = AuditLogger(session)
        self.allow_empty_contract = allow_empty_contract

    async def load(self, tenant_id: UUID, contract: Contract) -> ContractView:
        members = await self.bookings.list_for_contract(tenant_id, contract.id)
        return ContractView(contract=contract, bookings=members)

    async def create(self, ctx: RequestContext, data: ContractInput) -> ContractView:
        """Insert the contract row, then its members."""
        contract = Contract(
            tenant_id=ctx.tenant_id,
            customer_id=data.customer_id,
            contract_name=data.contract_name,
            status=data.status.value,
            total_amount=ZERO,
        )
        # Root first: members carry a foreign key to it.
        await self.contracts.add(contract)

        members = [
            new_booking(
                ctx.tenant_id, member, contract_id=contract.id, customer_id=data.customer_id
            )
            for member in data.members
        ]
        self.session.add_all(members)
        await self.session.flush()

        await self.recompute_total(ctx.tenant_id, contract)
        await self.audit.record(
            ctx,
            AuditEventType.CONTRACT_CREATED,
            "contract",
            contract.id,
            {
                "contract_name": contract.contract_name,
                "customer_id": str(contract.customer_id),
                "members": [booking_summary(b) for b in members],
                "total_amount": str(contract.total_amount),
            },
        )
        logger.info(
            "contract_created",
            contract_id=str(contract.id),
            members=len(members),
            total_amount=str(contract.total_amount),
        )
        return await self.load(ctx.tenant_id, contract)

    async def replace_members(
        self,
        ctx: RequestContext,
        contract: Contract,
        existing: list[Booking],
        members: list[ContractMemberInput],
    ) -> ContractView:
        """Diff ``members`` against ``existing`` and apply the result.

        Members with an ``id`` update that booking in place, members
        without one are inserted, and live members missing from the new set
        are soft-cancelled.

        Raises:
            ValidationError: If the new set is empty or names a booking that
                is not a live member of this contract
        """
        if not members:
            raise ValidationError("A contract needs at least one member booking", field="members")

        by_id = {b.id: b for b in existing}
        kept: set[UUID] = set()
        inserted: list[Booking] = []
        updated: list[Booking] = []

        for member in members:
            if member.id is None:
                booking = new_booking(
                    ctx.tenant_id, member, contract_id=contract.id, customer_id=contract.customer_id
                )
                self.session.add(booking)
                inserted.append(booking)
                continue

            booking = by_id[member.id]
            kept.add(member.id)
            if self.apply_member_changes(booking, member):
                updated.append(booking)

        removed = []
        now = datetime.now(UTC)
        for booking in existing:
            if booking.id in kept or booking.is_cancelled:
                continue
            cancel_booking_row(
                booking, actor_id=ctx.actor_id, reason=REMOVED_FROM_CONTRACT, at=now
            )
            removed.append(booking)

        await self.session.flush()
        await self.recompute_total(ctx.tenant_id, contract)

        await self.audit.record(
            ctx,
            AuditEventType.CONTRACT_UPDATED,
            "contract",
            contract.id,
            {
                "inserted": [booking_summary(b) for b in inserted],
                "updated": [booking_summary(b) for b in updated],
                "removed": [str(b.id) for b in removed],
                "total_amount": str(contract.total_amount),
            },
        )
        logger.info(
            "contract_members_replaced",
            contract_id=str(contract.id),
            inserted=len(inserted),
            updated=len(updated),
            removed=len(removed),
        )
        return await self.load(ctx.tenant_id, contract)

    @staticmethod
    def apply_member_changes(booking: Booking, member: ContractMemberInput) -> bool:
        """Copy submitted values onto an existing member row.

        The status is only changed when the caller sent one.

        Returns:
            True if anything changed
        """
        slot = member.slot
        values: dict[str, Any] = {
            "space_id": member.space_id,
            "venue_id": member.venue_id,
            "event_date": member.event_date,
            "start_minute": slot.start_minute,
            "end_minute": slot.end_minute,
        }
        for name in _EDITABLE_FIELDS:
            values[name] = getattr(member, name)
        if "status" in member.model_fields_set:
            values["status"] = assert_transition(booking.status, member.status).value

        changed = False
        for name, value in values.items():
            if getattr(booking, name) != value:
                setattr(booking, name, value)
                changed = True
        return changed

    async def recompute_total(self, tenant_id: UUID, contract: Contract) -> Decimal:
        """Set the contract total to the sum over live members.

        Never trusts a stored or client-supplied total.
        """
        live = await self.bookings.list_for_contract(tenant_id, contract.id, live_only=True)
        total = sum((Decimal(b.total_amount) for b in live), ZERO).quantize(Decimal("0.01"))
        contract.total_amount = total
        await self.session.flush()
        return total

    async def after_member_change(self, ctx: RequestContext, contract: Contract) -> Contract:
        """Recompute the total and cascade-cancel a contract left empty."""
        await self.recompute_total(ctx.tenant_id, contract)
        if contract.status == ContractStatus.CANCELLED.value or self.allow_empty_contract:
            return contract

        live = await self.bookings.list_for_contract(ctx.tenant_id, contract.id, live_only=True)
        if not live:
            contract.status = ContractStatus.CANCELLED.value
            await self.session.flush()
            await self.audit.record(
                ctx,
                AuditEventType.CONTRACT_CANCELLED,
                "contract",
                contract.id,
                {"reason": "last_member_cancelled"},
            )
            logger.info("contract_cascade_cancelled", contract_id=str(contract.id))
        return contract

    async def cancel(
        self,
        ctx: RequestContext,
        contract: Contract,
        *,
        reason: str | None = None,
        note: str | None = None,
    ) -> ContractView:
        """Cancel every live member and the contract itself.

        Idempotent: a cancelled contract is returned unchanged.
        """
        if contract.status == ContractStatus.CANCELLED.value:
            return await self.load(ctx.tenant_id, contract)

        members = await self.bookings.list_for_contract(ctx.tenant_id, contract.id, live_only=True)
        now = datetime.now(UTC)
        for booking in members:
            cancel_booking_row(
                booking,
                actor_id=ctx.actor_id,
                reason=reason or CONTRACT_CANCELLED,
                note=note,
                at=now,
            )
        contract.status = ContractStatus.CANCELLED.value
        await self.session.flush()
        await self.recompute_total(ctx.tenant_id, contract)

        await self.audit.record(
            ctx,
            AuditEventType.CONTRACT_CANCELLED,
            "contract",
            contract.id,
            {"reason": reason, "note": note, "cancelled_members": [str(b.id) for b in members]},
        )
        return await self.load(ctx.tenant_id, contract)

    async def set_member_status(
        self,
        ctx: RequestContext,
        contract: Contract,
        members: list[Booking],
        status: BookingStatus,
    ) -> ContractView:
        """Move every live member to ``status`` and relabel the contract.

        Raises:
            InvalidStatusTransitionError: If any member cannot make the move;
                no member is changed in that case
        """
        for booking in members:
            assert_transition(booking.status, status)

        previous = {str(b.id): b.status for b in members}
        for booking in members:
            booking.status = status.value

        previous_contract_status = contract.status
        if status in CONFIRMED_STATUSES:
            contract.status = ContractStatus.ACTIVE.value
        elif status == BookingStatus.COMPLETED:
            contract.status = ContractStatus.COMPLETED.value
        await self.session.flush()

        await self.audit.record(
            ctx,
            AuditEventType.CONTRACT_STATUS_CHANGED,
            "contract",
            contract.id,
            {
                "booking_status": status.value,
                "previous_member_statuses": previous,
                "contract_status": contract.status,
                "previous_contract_status": previous_contract_status,
            },
        )
        return await self.load(ctx.tenant_id, contract)

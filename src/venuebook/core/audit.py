"""Audit logging service for booking accountability."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.core.context import RequestContext
from venuebook.db.models.audit import AuditEvent, AuditEventType, AuditSeverity


class AuditLogger:
    """Service for creating and querying audit events.

    Audit events are immutable, append-only rows. They are written through
    the session of the write they describe, so they commit or roll back
    together with it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_event(
        self,
        event_type: AuditEventType | str,
        correlation_id: UUID,
        event_data: dict[str, Any],
        severity: AuditSeverity | str = AuditSeverity.INFO,
        tenant_id: UUID | None = None,
        user_id: UUID | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
    ) -> AuditEvent:
        """Create an immutable audit log entry.

        Args:
            event_type: Type of event (booking.created, contract.updated, etc.)
            correlation_id: Request correlation ID for tracing related events
            event_data: Structured event details (must be JSON serializable)
            severity: Event severity level (default: INFO)
            tenant_id: Tenant ID (null for system events)
            user_id: Actor who triggered the event
            resource_type: "booking" or "contract"
            resource_id: Identifier of the affected row

        Returns:
            Created AuditEvent instance
        """
        if isinstance(event_type, AuditEventType):
            event_type = event_type.value
        if isinstance(severity, AuditSeverity):
            severity = severity.value

        event = AuditEvent(
            event_type=event_type,
            severity=severity,
            tenant_id=tenant_id,
            user_id=user_id,
            correlation_id=correlation_id,
            resource_type=resource_type,
            resource_id=resource_id,
            event_data=event_data,
        )

        self.db.add(event)
        await self.db.flush()

        return event

    async def record(
        self,
        ctx: RequestContext,
        event_type: AuditEventType,
        resource_type: str,
        resource_id: UUID,
        event_data: dict[str, Any],
    ) -> AuditEvent:
        """Log an event on behalf of the actor in ``ctx``."""
        return await self.log_event(
            event_type,
            correlation_id=ctx.correlation_id,
            event_data=event_data,
            tenant_id=ctx.tenant_id,
            user_id=ctx.actor_id,
            resource_type=resource_type,
            resource_id=str(resource_id),
        )

    async def query_events(
        self,
        tenant_id: UUID | None = None,
        event_type: AuditEventType | str | None = None,
        resource_id: str | None = None,
        correlation_id: UUID | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditEvent]:
        """Query audit events with filters.

        Returns:
            Matching audit events, newest first
        """
        if isinstance(event_type, AuditEventType):
            event_type = event_type.value

        query = select(AuditEvent).order_by(
            AuditEvent.created_at.desc(),
            AuditEvent.audit_id.desc(),  # Secondary sort for equal timestamps
        )

        if tenant_id is not None:
            query = query.where(AuditEvent.tenant_id == tenant_id)
        if event_type is not None:
            query = query.where(AuditEvent.event_type == event_type)
        if resource_id is not None:
            query = query.where(AuditEvent.resource_id == resource_id)
        if correlation_id is not None:
            query = query.where(AuditEvent.correlation_id == correlation_id)
        if start_date is not None:
            query = query.where(AuditEvent.created_at >= start_date)
        if end_date is not None:
            query = query.where(AuditEvent.created_at <= end_date)

        query = query.limit(min(limit, 1000)).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())

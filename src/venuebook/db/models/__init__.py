"""Database models for VenueBook."""

from .audit import AuditEvent, AuditEventType, AuditSeverity
from .base import Base, PortableJSON, PortableUUID, TenantOwnedMixin, TimestampMixin
from .booking import Booking, BookingStatus, Contract, ContractStatus
from .tenant import Tenant, TenantStatus
from .venue import Customer, Space, Venue

__all__ = [
    "Base",
    "PortableJSON",
    "PortableUUID",
    "TenantOwnedMixin",
    "TimestampMixin",
    "Tenant",
    "TenantStatus",
    "Venue",
    "Space",
    "Customer",
    "Booking",
    "BookingStatus",
    "Contract",
    "ContractStatus",
    "AuditEvent",
    "AuditEventType",
    "AuditSeverity",
]

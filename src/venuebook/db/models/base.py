"""Declarative base and column types shared by the venuebook tables.

Every table runs on PostgreSQL (asyncpg) in production and on SQLite
(aiosqlite) in tests, so ids and JSON payloads go through portable types.
Tenant-owned rows get their ``id`` and ``tenant_id`` from
``TenantOwnedMixin``; the repositories rely on that column name.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.types import TypeDecorator
from uuid_utils.compat import uuid7

# Booking and contract amounts
MONEY = Numeric(12, 2)


class PortableUUID(TypeDecorator):
    """Native UUID on PostgreSQL, 36-char text on SQLite."""

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name == "postgresql":
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, UUID):
            return value
        return UUID(value)


class PortableJSON(TypeDecorator):
    """JSONB on PostgreSQL; audit payloads are the only user."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class TenantOwnedMixin:
    """UUIDv7 primary key plus the owning tenant.

    Deleting a tenant removes its rows. Composite ``(tenant_id, id)``
    foreign keys between tenant-owned tables are added by migration 001
    on PostgreSQL.
    """

    id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)

    @declared_attr
    def tenant_id(cls) -> Mapped[UUID]:
        return mapped_column(
            PortableUUID(), ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False
        )

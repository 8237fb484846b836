"""Unit tests for the shared model columns and types."""

from uuid import UUID

from sqlalchemy.dialects import postgresql, sqlite
from uuid_utils.compat import uuid7

from venuebook.db.models import Booking, Contract, Customer, Space, Venue
from venuebook.db.models.base import PortableUUID


class TestTenantOwnedMixin:
    """Tests for the id/tenant_id columns shared by tenant-owned tables."""

    def test_every_tenant_table_has_both_columns(self):
        for model in (Venue, Space, Customer, Contract, Booking):
            table = model.__table__
            assert table.c.id.primary_key
            assert not table.c.tenant_id.nullable
            [fk] = table.c.tenant_id.foreign_keys
            assert fk.target_fullname == "tenants.tenant_id"
            assert fk.ondelete == "CASCADE"

    def test_columns_are_not_shared_between_tables(self):
        assert Booking.__table__.c.tenant_id is not Contract.__table__.c.tenant_id

    def test_id_defaults_to_uuid7(self):
        default = Booking.__table__.c.id.default

        value = default.arg(None)

        assert isinstance(value, UUID)
        assert value.version == 7


class TestPortableUUID:
    """Tests for PortableUUID bind and result conversion."""

    def test_sqlite_stores_text(self):
        value = uuid7()

        bound = PortableUUID().process_bind_param(value, sqlite.dialect())

        assert bound == str(value)

    def test_postgres_passes_uuid_through(self):
        value = uuid7()

        assert PortableUUID().process_bind_param(value, postgresql.dialect()) is value

    def test_result_parsed_back(self):
        value = uuid7()

        assert PortableUUID().process_result_value(str(value), sqlite.dialect()) == value
        assert PortableUUID().process_result_value(None, sqlite.dialect()) is None

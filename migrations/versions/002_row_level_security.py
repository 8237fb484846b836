"""Row-level security on tenant-owned tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

Policies compare each row's tenant_id with the transaction-local setting
app.current_tenant_id, which the application sets at the start of every
tenant transaction. A missing setting matches no rows.

Super admins still act through an assumed tenant, so no policy bypasses
the tenant check. FORCE makes the policies apply to the table owner too.
"""

from alembic import op

# revision identifiers
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None

TENANT_TABLES = ("venues", "spaces", "customers", "contracts", "bookings", "audit_events")

TENANT_PREDICATE = "tenant_id = NULLIF(current_setting('app.current_tenant_id', true), '')::uuid"


def upgrade() -> None:
    for table in TENANT_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")
        op.execute(f"""
            CREATE POLICY tenant_isolation ON {table}
            USING ({TENANT_PREDICATE})
            WITH CHECK ({TENANT_PREDICATE})
            """)

    # Tenants are looked up before a tenant scope exists.
    op.execute("ALTER TABLE tenants ENABLE ROW LEVEL SECURITY")
    op.execute("CREATE POLICY tenant_read ON tenants FOR SELECT USING (true)")


def downgrade() -> None:
    op.execute("DROP POLICY IF EXISTS tenant_read ON tenants")
    op.execute("ALTER TABLE tenants DISABLE ROW LEVEL SECURITY")
    for table in TENANT_TABLES:
        op.execute(f"DROP POLICY IF EXISTS tenant_isolation ON {table}")
        op.execute(f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

"""Exclusion constraint against overlapping blocking bookings

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

Two bookings of the same tenant, space and date whose half-open minute
ranges overlap may not both hold a blocking status. The write coordinator
already rejects such writes under SERIALIZABLE isolation; a violation
here (SQLSTATE 23P01) is treated as retryable, and the retry then sees
the committed row as a conflict.

The constraint is checked at COMMIT. A contract edit updates its members
one row at a time, and shifting adjacent members (10-12, 12-14 to 11-13,
13-15) passes through an intermediate state where two rows overlap.
"""

from alembic import op

# revision identifiers
revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None

BLOCKING_STATUSES = ("confirmed_deposit_paid", "confirmed_fully_paid", "completed")


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    statuses = ", ".join(f"'{s}'" for s in BLOCKING_STATUSES)
    op.execute(f"""
        ALTER TABLE bookings
        ADD CONSTRAINT ex_booking_blocking_overlap
        EXCLUDE USING gist (
            tenant_id WITH =,
            space_id WITH =,
            event_date WITH =,
            int4range(start_minute, end_minute, '[)') WITH &&
        )
        WHERE (space_id IS NOT NULL AND status IN ({statuses}))
        DEFERRABLE INITIALLY DEFERRED
        """)


def downgrade() -> None:
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_booking_blocking_overlap")

"""Tenant-scoped transactions.

Every write runs inside ``tenant_transaction``: one session, one
transaction at the configured isolation level, with the tenant and role
published as transaction-local settings so PostgreSQL row-level security
policies apply even if a query forgets its tenant predicate. The explicit
``tenant_id`` argument on every repository call remains the primary guard.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from venuebook.config.settings import IsolationLevel
from venuebook.core.context import RequestContext

logger = structlog.get_logger()


def dialect_name(session: AsyncSession) -> str:
    """Name of the dialect the session is bound to ("postgresql", "sqlite")."""
    return session.get_bind().dialect.name


async def apply_tenant_settings(session: AsyncSession, ctx: RequestContext) -> None:
    """Set ``app.current_tenant_id`` and ``app.current_role`` for this transaction.

    No-op on databases without ``set_config`` (SQLite).
    """
    if dialect_name(session) != "postgresql":
        return
    await session.execute(
        text(
            "SELECT set_config('app.current_tenant_id', :tenant_id, true), "
            "set_config('app.current_role', :role, true)"
        ),
        {"tenant_id": str(ctx.tenant_id), "role": ctx.role.value},
    )


@asynccontextmanager
async def tenant_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    ctx: RequestContext,
    isolation_level: IsolationLevel = IsolationLevel.SERIALIZABLE,
    *,
    set_rls: bool = True,
) -> AsyncIterator[AsyncSession]:
    """Open a session and run one transaction scoped to ``ctx.tenant_id``.

    Commits when the block exits normally and rolls back on any exception,
    including cancellation. Commit errors propagate to the caller.

    Args:
        session_factory: Factory producing sessions bound to the engine
        ctx: Resolved request context
        isolation_level: Isolation level for the transaction
        set_rls: Publish tenant/role as transaction-local settings

    Yields:
        The session, with its transaction already begun
    """
    async with session_factory() as session:
        if dialect_name(session) == "postgresql":
            # Must be the first statement so it applies to the whole transaction.
            await session.connection(execution_options={"isolation_level": isolation_level.value})
        else:
            await session.connection()

        try:
            if set_rls:
                await apply_tenant_settings(session, ctx)
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise

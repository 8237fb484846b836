"""Pytest fixtures for VenueBook tests."""

from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass
from uuid import UUID

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from uuid_utils.compat import uuid7

from venuebook.booking.coordinator import BookingWriteCoordinator
from venuebook.booking.types import BookingInput, ContractMemberInput
from venuebook.config.settings import Settings, WriteCoordinatorConfig
from venuebook.core.context import RequestContext, Role, create_context
from venuebook.core.tenant import TenantService
from venuebook.db.config import create_engine, create_session_factory
from venuebook.db.models.base import Base
from venuebook.db.models.tenant import Tenant
from venuebook.db.models.venue import Customer, Space, Venue

EVENT_DATE = "2026-06-12"


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    Tests that build the app call setup_logging, which changes global
    structlog state.
    """
    yield
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file.

    A file (not :memory:) so that concurrent sessions share one database.
    """
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'venuebook.db'}",
        ENVIRONMENT="test",
        DEBUG=True,
        log_level="DEBUG",
    )


@pytest_asyncio.fixture
async def test_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with all tables."""
    engine = create_engine(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


# =============================================================================
# Tenant directory fixtures
# =============================================================================


@dataclass
class TenantSeed:
    """A tenant with one venue, two spaces and one customer."""

    tenant: Tenant
    venue: Venue
    spaces: list[Space]
    customer: Customer

    @property
    def tenant_id(self) -> UUID:
        return self.tenant.tenant_id

    @property
    def space(self) -> Space:
        return self.spaces[0]


async def seed_tenant(
    session_factory: async_sessionmaker[AsyncSession], name: str
) -> TenantSeed:
    async with session_factory() as session:
        tenant = await TenantService(session).create_tenant(
            name=name, slug=f"{name.lower().replace(' ', '-')}-{uuid7().hex[:12]}"
        )
        venue = Venue(tenant_id=tenant.tenant_id, name=f"{name} Hall")
        session.add(venue)
        await session.flush()
        spaces = [
            Space(tenant_id=tenant.tenant_id, venue_id=venue.id, name="Ballroom", capacity=200),
            Space(tenant_id=tenant.tenant_id, venue_id=venue.id, name="Terrace", capacity=80),
        ]
        customer = Customer(tenant_id=tenant.tenant_id, name="Jordan Lee")
        session.add_all([*spaces, customer])
        await session.commit()
        return TenantSeed(tenant=tenant, venue=venue, spaces=spaces, customer=customer)


@pytest_asyncio.fixture
async def tenant_a(session_factory) -> TenantSeed:
    return await seed_tenant(session_factory, "Tenant A")


@pytest_asyncio.fixture
async def tenant_b(session_factory) -> TenantSeed:
    return await seed_tenant(session_factory, "Tenant B")


@pytest.fixture
def ctx(tenant_a: TenantSeed) -> RequestContext:
    """Manager context for tenant A."""
    return create_context(tenant_id=tenant_a.tenant_id, actor_id=uuid7(), role=Role.MANAGER)


@pytest.fixture
def ctx_b(tenant_b: TenantSeed) -> RequestContext:
    """Manager context for tenant B."""
    return create_context(tenant_id=tenant_b.tenant_id, actor_id=uuid7(), role=Role.MANAGER)


@pytest.fixture
def write_config() -> WriteCoordinatorConfig:
    """Fast backoff so retry tests do not sleep."""
    return WriteCoordinatorConfig(backoff_initial_seconds=0.001, backoff_max_seconds=0.01)


@pytest.fixture
def coordinator(session_factory, write_config) -> BookingWriteCoordinator:
    return BookingWriteCoordinator(session_factory, write_config)


@pytest.fixture
def make_booking() -> Callable[..., BookingInput]:
    """Factory for booking input with sensible defaults."""

    def _make(
        space_id: UUID | None,
        start: str = "18:00",
        end: str = "22:00",
        status: str = "inquiry",
        event_date: str = EVENT_DATE,
        **overrides,
    ) -> BookingInput:
        return BookingInput(
            space_id=space_id,
            event_name=overrides.pop("event_name", "Spring Gala"),
            event_date=event_date,
            start_time=start,
            end_time=end,
            status=status,
            **overrides,
        )

    return _make


@pytest.fixture
def make_member() -> Callable[..., ContractMemberInput]:
    """Factory for contract member input."""

    def _make(
        space_id: UUID | None,
        event_date: str = EVENT_DATE,
        start: str = "18:00",
        end: str = "22:00",
        status: str = "tentative",
        **overrides,
    ) -> ContractMemberInput:
        return ContractMemberInput(
            space_id=space_id,
            event_name=overrides.pop("event_name", "Wedding weekend"),
            event_date=event_date,
            start_time=start,
            end_time=end,
            status=status,
            **overrides,
        )

    return _make


# =============================================================================
# API test fixtures
# =============================================================================


@pytest.fixture
def test_app(test_settings: Settings, session_factory) -> FastAPI:
    """FastAPI application sharing the test database."""
    from venuebook.api.app import create_app

    return create_app(settings=test_settings, session_factory=session_factory)


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client calling the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def identity_headers() -> Callable[..., dict[str, str]]:
    """Factory for the identity headers the auth layer would forward."""

    def _headers(
        tenant_id: UUID | None,
        role: str = "manager",
        actor_id: UUID | None = None,
        **extra: str,
    ) -> dict[str, str]:
        headers = {"X-Actor-ID": str(actor_id or uuid7()), "X-Actor-Role": role}
        if tenant_id is not None:
            headers["X-Tenant-ID"] = str(tenant_id)
        headers.update(extra)
        return headers

    return _headers

"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from venuebook import __version__
from venuebook.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from venuebook.api.routers import health_router, v1_router
from venuebook.booking.coordinator import BookingWriteCoordinator
from venuebook.config.settings import Settings, get_settings
from venuebook.config.validation import validate_or_raise
from venuebook.core.logging import setup_logging
from venuebook.core.tenant import TenantContextResolver
from venuebook.db.config import create_engine, create_session_factory, init_db

logger = structlog.get_logger("venuebook.api")


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing)
        session_factory: Optional session factory; built from
            ``settings.DATABASE_URL`` when omitted

    Returns:
        Configured FastAPI application

    Example:
        # Run with uvicorn
        uvicorn venuebook.api.app:create_app --factory
    """
    if settings is None:
        settings = get_settings()
    setup_logging(settings.log_level, json_format=settings.ENVIRONMENT == "production")
    validate_or_raise(settings)

    app = FastAPI(
        title="VenueBook API",
        description="Venue booking conflict detection and contract consistency",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=_lifespan,
    )

    engine = None
    if session_factory is None:
        engine = create_engine(settings)
        session_factory = create_session_factory(engine)

    # Store shared services on app state for access in dependencies
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.resolver = TenantContextResolver(session_factory)
    app.state.coordinator = BookingWriteCoordinator(session_factory, settings.write)

    _configure_middleware(app, settings)
    _configure_routers(app)

    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Verify the database on startup and dispose of the engine on shutdown."""
    logger.info("api_starting", version=__version__)
    if app.state.engine is not None:
        await init_db(app.state.engine)
    yield
    logger.info("api_stopping")
    if app.state.engine is not None:
        await app.state.engine.dispose()


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure middleware stack.

    Middleware order (outermost to innermost execution):
    1. RequestLoggingMiddleware - Assigns request id, logs all requests
    2. ErrorHandlingMiddleware - Converts exceptions to HTTP responses

    Note: Middleware is added in reverse order because Starlette
    processes them from last-added to first-added.
    """
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)
    app.add_middleware(RequestLoggingMiddleware)


def _configure_routers(app: FastAPI) -> None:
    app.include_router(health_router)
    app.include_router(v1_router)

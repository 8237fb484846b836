"""Health check endpoints."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from sqlalchemy import text

from venuebook import __version__
from venuebook.api.schemas.health import (
    ComponentHealth,
    HealthDetailResponse,
    HealthResponse,
    HealthStatus,
)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """Liveness check; no tenant headers required."""
    return HealthResponse(
        status=HealthStatus.HEALTHY,
        version=__version__,
        timestamp=datetime.now(UTC),
    )


@router.get("/health/db", response_model=HealthDetailResponse, summary="Database health check")
async def health_db(request: Request) -> HealthDetailResponse:
    """Executes a trivial query to verify database connectivity."""
    database = await _check_database(request)
    return HealthDetailResponse(
        status=database.status,
        version=__version__,
        timestamp=datetime.now(UTC),
        database=database,
    )


async def _check_database(request: Request) -> ComponentHealth:
    start = time.perf_counter()
    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001 - reported as unhealthy
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message=type(exc).__name__)
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )

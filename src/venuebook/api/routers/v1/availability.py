"""Availability API endpoint.

- POST /v1/availability - Check a prospective slot across spaces
"""

from fastapi import APIRouter

from venuebook.api.dependencies import ContextDep, CoordinatorDep
from venuebook.api.schemas.booking import AvailabilityResponse
from venuebook.booking.types import AvailabilityQuery

router = APIRouter(prefix="/availability", tags=["availability"])


@router.post("", response_model=AvailabilityResponse)
async def check_availability(
    query: AvailabilityQuery,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
) -> AvailabilityResponse:
    """Report every overlap for the slot; read-only."""
    conflicts = await coordinator.check_availability(ctx, query)
    return AvailabilityResponse(
        available=not any(c.blocking for c in conflicts),
        conflicts=conflicts,
    )

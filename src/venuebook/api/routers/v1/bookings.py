"""Booking API endpoints.

- POST /v1/bookings - Create a standalone booking
- GET /v1/bookings - List bookings
- GET /v1/bookings/{booking_id} - Get a booking
- PATCH /v1/bookings/{booking_id} - Edit a booking
- POST /v1/bookings/{booking_id}/cancel - Cancel a booking
"""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from venuebook.api.dependencies import ContextDep, CoordinatorDep
from venuebook.api.schemas.booking import (
    BookingResponse,
    CancelRequest,
    WriteResponse,
    booking_write_response,
)
from venuebook.booking.types import BookingInput, BookingUpdate

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=WriteResponse[BookingResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    body: BookingInput,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
) -> WriteResponse[BookingResponse]:
    result = await coordinator.create_booking(ctx, body)
    return booking_write_response(result)


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    ctx: ContextDep,
    coordinator: CoordinatorDep,
    space_id: UUID | None = None,
    event_date: date | None = None,
    include_cancelled: bool = True,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[BookingResponse]:
    bookings = await coordinator.list_bookings(
        ctx,
        space_id=space_id,
        event_date=event_date,
        include_cancelled=include_cancelled,
        limit=limit,
        offset=offset,
    )
    return [BookingResponse.from_booking(b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
) -> BookingResponse:
    booking = await coordinator.get_booking(ctx, booking_id)
    return BookingResponse.from_booking(booking)


@router.patch("/{booking_id}", response_model=WriteResponse[BookingResponse])
async def update_booking(
    booking_id: UUID,
    body: BookingUpdate,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
) -> WriteResponse[BookingResponse]:
    result = await coordinator.update_booking(ctx, booking_id, body)
    return booking_write_response(result)


@router.post("/{booking_id}/cancel", response_model=WriteResponse[BookingResponse])
async def cancel_booking(
    booking_id: UUID,
    ctx: ContextDep,
    coordinator: CoordinatorDep,
    body: CancelRequest | None = None,
) -> WriteResponse[BookingResponse]:
    """Cancel a booking; cancelling twice is not an error."""
    body = body or CancelRequest()
    result = await coordinator.cancel_booking(ctx, booking_id, reason=body.reason, note=body.note)
    return booking_write_response(result)

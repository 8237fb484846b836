"""API v1 routers."""

from fastapi import APIRouter

from .availability import router as availability_router
from .bookings import router as bookings_router
from .contracts import router as contracts_router

router = APIRouter(prefix="/v1")

router.include_router(availability_router)
router.include_router(bookings_router)
router.include_router(contracts_router)

__all__ = ["router", "availability_router", "bookings_router", "contracts_router"]

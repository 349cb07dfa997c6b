# backend/parkshare/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST /check-availability - Check if a window is bookable
    GET /host - Bookings on the caller's spots (hosts only)
    GET / - Caller's bookings as renter, paginated
    POST / - Create a pending booking
    GET /{booking_id} - Booking details (renter or spot owner)
    PATCH /{booking_id} - Change status and/or payment status
    DELETE /{booking_id} - Cancel as renter
"""

import asyncio
import logging
from typing import Any, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_current_caller
from ...core.enums import BookingStatus
from ...core.exceptions import DomainException
from ...core.ulid_helper import ULID_PATTERN
from ...principal import Caller
from ...schemas.booking import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def _booking_id_path() -> Any:
    return Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    )


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("/check-availability", response_model=AvailabilityCheckResponse)
async def check_availability(
    check_data: AvailabilityCheckRequest = Body(...),
    current_user: Caller = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> AvailabilityCheckResponse:
    """Check whether a window on a spot could be booked right now."""
    try:
        result = await asyncio.to_thread(
            booking_service.check_availability,
            check_data.spot_id,
            check_data.start_time,
            check_data.end_time,
            check_data.exclude_booking_id,
        )
        return AvailabilityCheckResponse.from_result(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/host", response_model=BookingListResponse)
async def list_host_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_user: Caller = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """Bookings on spots the caller owns, newest first."""
    try:
        result = await asyncio.to_thread(
            booking_service.list_host_bookings, current_user, page, limit, status_filter
        )
        return BookingListResponse.from_page(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/", response_model=BookingListResponse)
async def list_my_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_user: Caller = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """Bookings the caller made as a renter, newest first."""
    try:
        result = await asyncio.to_thread(
            booking_service.list_renter_bookings, current_user, page, limit, status_filter
        )
        return BookingListResponse.from_page(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_user: Caller = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Create a pending booking; the spot owner confirms it later."""
    try:
        details = await asyncio.to_thread(
            booking_service.create_booking,
            current_user,
            booking_data.spot_id,
            booking_data.vehicle_id,
            booking_data.start_time,
            booking_data.end_time,
            booking_data.vehicle_info.model_dump(),
            booking_data.special_instructions,
        )
        return BookingResponse.from_details(details)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Booking routes (path parameter)
# ============================================================================


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking_details(
    booking_id: str = _booking_id_path(),
    current_user: Caller = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Booking details for the renter or the spot owner."""
    try:
        details = await asyncio.to_thread(booking_service.get_booking, booking_id, current_user)
        return BookingResponse.from_details(details)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={
        400: {"description": "Illegal transition or unsupported payment status"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking changed since it was read"},
    },
)
async def update_booking_status(
    booking_id: str = _booking_id_path(),
    update_data: BookingStatusUpdate = Body(...),
    current_user: Caller = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Move the booking through its lifecycle and/or record payment status.

    ``payment_status`` accepts only paid, failed or refunded; any other value
    is rejected with 400 ``INVALID_PAYMENT_STATUS`` and nothing is changed.
    A stale ``expected_version`` or a concurrent write returns 409
    ``CONCURRENT_MODIFICATION``.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.update_status,
            booking_id,
            current_user,
            update_data.status,
            update_data.payment_status,
            update_data.expected_version,
            update_data.payment_intent_id,
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def cancel_booking(
    booking_id: str = _booking_id_path(),
    current_user: Caller = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Cancel a pending or confirmed booking at least an hour before it starts."""
    try:
        booking = await asyncio.to_thread(booking_service.cancel_booking, booking_id, current_user)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)

# backend/parkshare/schemas/booking.py
"""
Booking request and response schemas.

Requests use the strict base (unknown fields rejected). Business validation
(windows, schedules, transitions) lives in the domain layer so that its
reason codes reach the caller unchanged; these schemas only check shape.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import ConfigDict, Field

from ..domain.vehicle_info import (
    COLOR_MAX_LENGTH,
    LICENSE_PLATE_MAX_LENGTH,
    MAKE_MAX_LENGTH,
    MODEL_MAX_LENGTH,
)
from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel
from .base_responses import PaginatedResponse


class VehicleInfoIn(StrictRequestModel):
    license_plate: str = Field(..., min_length=1, max_length=LICENSE_PLATE_MAX_LENGTH)
    make: Optional[str] = Field(None, max_length=MAKE_MAX_LENGTH)
    model: Optional[str] = Field(None, max_length=MODEL_MAX_LENGTH)
    color: Optional[str] = Field(None, max_length=COLOR_MAX_LENGTH)


class BookingCreate(StrictRequestModel):
    """Reserve a spot for a half-open window [start_time, end_time)."""

    spot_id: str = Field(..., min_length=1, description="Parking spot to book")
    vehicle_id: str = Field(..., min_length=1, description="Renter's registered vehicle")
    start_time: datetime = Field(..., description="Window start (naive values are UTC)")
    end_time: datetime = Field(..., description="Window end (naive values are UTC)")
    vehicle_info: VehicleInfoIn
    special_instructions: Optional[str] = Field(None, max_length=500)


class BookingStatusUpdate(StrictRequestModel):
    """
    Change status and/or payment status.

    Values are validated by the service so unknown statuses come back with
    a reason code rather than a schema error.
    """

    status: Optional[str] = Field(None, max_length=20)
    payment_status: Optional[str] = Field(None, max_length=20)
    payment_intent_id: Optional[str] = Field(None, max_length=255)
    expected_version: Optional[int] = Field(
        None, ge=1, description="Reject the update if the booking has changed since this version"
    )


class AvailabilityCheckRequest(StrictRequestModel):
    spot_id: str = Field(..., min_length=1)
    start_time: datetime
    end_time: datetime
    exclude_booking_id: Optional[str] = None


class AvailabilityCheckResponse(StandardizedModel):
    available: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    conflicting_booking_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: Any) -> "AvailabilityCheckResponse":
        return cls(
            available=result.available,
            reason=result.reason,
            code=result.code,
            conflicting_booking_ids=[b.id for b in result.conflicts],
        )


class VehicleInfoOut(StandardizedModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True, populate_by_name=True)

    license_plate: str
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None


class SpotSummary(StandardizedModel):
    """Spot fields shown alongside a booking."""

    id: str
    title: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    hourly_rate: Money
    images: List[str] = Field(default_factory=list)


class BookingResponse(StandardizedModel):
    """Complete booking as seen by its renter or the spot owner."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True, populate_by_name=True)

    id: str
    reference_number: str
    renter_id: str
    spot_id: str
    vehicle_id: str
    start_time: datetime
    end_time: datetime
    hourly_rate: Money
    total_hours: float
    total_price: Money
    duration_minutes: int
    formatted_duration: str
    status: str
    payment_status: str
    payment_intent_id: Optional[str] = None
    vehicle_info: VehicleInfoOut
    special_instructions: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None
    version: int
    spot: Optional[SpotSummary] = None

    @classmethod
    def from_booking(cls, booking: Any, spot: Any = None) -> "BookingResponse":
        """Build from a Booking ORM row and an optional SpotSnapshot."""
        response = cls.model_validate(booking)
        if spot is not None:
            response.spot = SpotSummary.model_validate(spot.summary())
        return response

    @classmethod
    def from_details(cls, details: Any) -> "BookingResponse":
        return cls.from_booking(details.booking, details.spot)


class BookingListResponse(PaginatedResponse[BookingResponse]):
    @classmethod
    def from_page(cls, page: Any) -> "BookingListResponse":
        return cls(
            items=[BookingResponse.from_booking(b, page.spots.get(b.spot_id)) for b in page.items],
            total=page.total,
            page=page.page,
            limit=page.limit,
            pages=page.pages,
            has_next=page.has_next,
            has_prev=page.has_prev,
        )

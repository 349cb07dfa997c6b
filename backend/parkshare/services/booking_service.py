# backend/parkshare/services/booking_service.py
"""
Booking Service for ParkShare

Owns the booking lifecycle:
- Creating reservations (validation, availability, pricing, persistence)
- Reading a booking as its renter or the spot's owner
- Status and payment-status changes through the state machine
- Renter cancellation with the pre-start cancellation window
- Availability checks and paginated renter/host listings

Spot and vehicle data come from injected collaborators; this service never
writes to them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.config import settings
from ..core.enums import BLOCKING_STATUSES, SETTABLE_PAYMENT_STATUSES, BookingStatus, PaymentStatus
from ..core.exceptions import (
    BookingConflictException,
    CancellationWindowExpiredException,
    ConcurrentModificationException,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    SelfBookingException,
    ValidationException,
)
from ..domain.booking_state_machine import BookingParty, assert_transition
from ..domain.pricing import compute_price
from ..domain.time_window import validate_against_schedule, validate_window
from ..domain.vehicle_info import VehicleInfo
from ..integrations.listing_contracts import SpotDirectory, SpotSnapshot, VehicleRegistry
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Caller
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from .availability import AvailabilityOracle
from .base import BaseService

logger = logging.getLogger(__name__)

GENERIC_CONFLICT_MESSAGE = "Parking spot is not available for the selected time"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BookingDetails:
    """A booking with its spot resolved for display."""

    booking: Booking
    spot: Optional[SpotSnapshot] = None


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    conflicts: Tuple[Booking, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PaginatedBookings:
    items: List[Booking]
    total: int
    page: int
    limit: int
    # spot id -> snapshot for the spots referenced on this page
    spots: Mapping[str, SpotSnapshot] = field(default_factory=dict)

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Concurrency: creates and confirm/activate transitions take the per-spot
    guard before checking availability, inside the same transaction as the
    write. Every other update relies on the booking's version column.
    """

    def __init__(
        self,
        db: Session,
        spots: SpotDirectory,
        vehicles: VehicleRegistry,
        repository: Optional[BookingRepository] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            spots: Spot lookup collaborator
            vehicles: Vehicle ownership collaborator
            repository: Optional BookingRepository instance
            now: Clock returning an aware UTC datetime (defaults to wall clock)
        """
        super().__init__(db)
        self.spots = spots
        self.vehicles = vehicles
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.availability = AvailabilityOracle(self.repository)
        self._now = now or _utcnow

    # Create

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        caller: Caller,
        spot_id: str,
        vehicle_id: str,
        start_time: Union[datetime, str],
        end_time: Union[datetime, str],
        vehicle_info: Union[VehicleInfo, Mapping[str, Any], None],
        special_instructions: Optional[str] = None,
    ) -> BookingDetails:
        """
        Create a pending booking for ``caller``.

        All validation runs before the write transaction opens. Inside it the
        spot guard is taken, availability is re-read, and the row is inserted.

        Raises:
            ValidationException: window, spot state, schedule, vehicle or input rules
            NotFoundException: the spot does not exist
            SelfBookingException: the caller owns the spot
            BookingConflictException: a confirmed or active booking overlaps
            CollaboratorException: spot or vehicle lookup failed
        """
        self.log_operation(
            "create_booking",
            renter_id=caller.user_id,
            spot_id=spot_id,
            vehicle_id=vehicle_id,
        )

        missing = [name for name, value in (("spot_id", spot_id), ("vehicle_id", vehicle_id)) if not value]
        if missing:
            raise ValidationException(
                "Missing required fields",
                code="MISSING_REQUIRED_FIELDS",
                details={"fields": missing},
            )

        window = validate_window(start_time, end_time, self._now())
        vehicle = self._coerce_vehicle_info(vehicle_info)
        instructions = self._clean_special_instructions(special_instructions)

        spot = self._require_spot(spot_id)
        if not spot.active:
            raise ValidationException(
                "Parking spot is not available",
                code="SPOT_INACTIVE",
                details={"spot_id": spot_id},
            )
        if spot.owner_id == caller.user_id:
            raise SelfBookingException(spot_id)
        validate_against_schedule(window, spot.schedule, spot.timezone)
        self._verify_vehicle_owner(vehicle_id, caller)

        quote = compute_price(window.start, window.end, spot.hourly_rate)

        with self.transaction():
            self.repository.lock_spot(spot_id)
            conflicts = self.availability.find_conflicts(spot_id, window.start, window.end)
            if conflicts:
                self._record_conflict("create")
                raise BookingConflictException(
                    GENERIC_CONFLICT_MESSAGE,
                    details=self._conflict_details(spot_id, window.start, window.end, conflicts),
                )

            booking = self.repository.create(
                renter_id=caller.user_id,
                spot_id=spot_id,
                vehicle_id=vehicle_id,
                start_time=window.start,
                end_time=window.end,
                hourly_rate=quote.hourly_rate,
                total_hours=quote.total_hours,
                total_price=quote.total_price,
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                vehicle_info=vehicle,
                special_instructions=instructions,
            )

        if settings.metrics_enabled:
            prometheus_metrics.inc_booking_created()
        self.logger.info(
            f"Created booking {booking.id} for spot {spot_id} "
            f"({quote.total_hours}h at {quote.hourly_rate}/h = {quote.total_price})"
        )
        return BookingDetails(booking=booking, spot=spot)

    # Read

    @BaseService.measure_operation("get_booking")
    def get_booking(self, booking_id: str, caller: Caller) -> BookingDetails:
        """
        Return a booking visible to ``caller``.

        Raises:
            NotFoundException: unknown booking id
            ForbiddenException: caller is neither the renter nor the spot owner
        """
        booking = self._require_booking(booking_id)
        spot = self.spots.get_spot(booking.spot_id)
        self._resolve_party(booking, spot, caller)
        return BookingDetails(booking=booking, spot=spot)

    # Status changes

    @BaseService.measure_operation("update_status")
    def update_status(
        self,
        booking_id: str,
        caller: Caller,
        status: Union[BookingStatus, str, None] = None,
        payment_status: Union[PaymentStatus, str, None] = None,
        expected_version: Optional[int] = None,
        payment_intent_id: Optional[str] = None,
    ) -> Booking:
        """
        Apply a status and/or payment-status change.

        ``status`` goes through the state machine for the caller's party.
        ``payment_status`` is independent of it and limited to paid, failed
        and refunded. When neither changes anything the booking is returned
        unchanged.

        Raises:
            NotFoundException: unknown booking id
            ForbiddenException: caller is not a party, or the party may not make this change
            InvalidTransitionException: illegal status pair
            CancellationWindowExpiredException: cancelling confirmed/active too close to start
            BookingConflictException: confirming/activating would overlap a blocking booking
            ConcurrentModificationException: the booking changed since it was read
        """
        target = self._parse_status(status) if status is not None else None
        payment = self._parse_payment_status(payment_status) if payment_status is not None else None

        booking = self._require_booking(booking_id)
        spot = self.spots.get_spot(booking.spot_id)
        party = self._resolve_party(booking, spot, caller)

        if expected_version is not None and booking.version != expected_version:
            raise ConcurrentModificationException(booking.id, expected_version)

        self.log_operation(
            "update_status",
            booking_id=booking.id,
            user_id=caller.user_id,
            party=party.value,
            from_status=booking.status,
            to_status=target.value if target else None,
            payment_status=payment.value if payment else None,
        )

        now = self._now()
        previous_status = booking.status
        changed = False

        with self.transaction():
            if target is not None:
                rule = assert_transition(party, booking.status, target)
                if rule.requires_cancellation_window:
                    self._enforce_cancellation_window(booking, now)
                if target in BLOCKING_STATUSES:
                    self._ensure_slot_still_free(booking)
                booking.apply_status(target, caller.user_id, at=now)
                changed = True

            if payment is not None and payment.value != booking.payment_status:
                booking.payment_status = payment.value
                changed = True
            if payment_intent_id and payment_intent_id != booking.payment_intent_id:
                booking.payment_intent_id = payment_intent_id
                changed = True

            if not changed:
                self.logger.debug(f"No changes requested for booking {booking.id}")
                return booking

            booking.updated_at = now
            self._flush_versioned(booking_id)

        if target is not None:
            self._record_transition(previous_status, target.value)
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, caller: Caller) -> Booking:
        """
        Cancel a pending or confirmed booking as its renter.

        Allowed while ``start_time - now`` is at least the cancellation
        window (60 minutes by default); exactly on the boundary succeeds.

        Raises:
            NotFoundException: unknown booking id
            ForbiddenException: caller is not the renter
            InvalidTransitionException: booking is not pending or confirmed
            CancellationWindowExpiredException: too close to the start
            ConcurrentModificationException: the booking changed since it was read
        """
        booking = self._require_booking(booking_id)
        if booking.renter_id != caller.user_id:
            raise ForbiddenException(
                "Only the renter can cancel this booking",
                code="ACCESS_DENIED",
                details={"booking_id": booking.id},
            )
        if not booking.is_cancellable:
            raise InvalidTransitionException(booking.status, BookingStatus.CANCELLED.value)

        now = self._now()
        self._enforce_cancellation_window(booking, now)

        self.log_operation("cancel_booking", booking_id=booking.id, user_id=caller.user_id)
        previous_status = booking.status
        with self.transaction():
            booking.apply_status(BookingStatus.CANCELLED, caller.user_id, at=now)
            self._flush_versioned(booking_id)

        self._record_transition(previous_status, BookingStatus.CANCELLED.value)
        return booking

    # Availability

    @BaseService.measure_operation("check_availability")
    def check_availability(
        self,
        spot_id: str,
        start_time: Union[datetime, str],
        end_time: Union[datetime, str],
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Report whether a window could be booked right now.

        Business rejections come back as ``available=False`` with a reason
        code instead of raising. An unknown spot still raises
        ``NotFoundException``.
        """
        try:
            window = validate_window(start_time, end_time, self._now())
        except ValidationException as exc:
            return AvailabilityResult(available=False, reason=exc.message, code=exc.code)

        spot = self._require_spot(spot_id)
        if not spot.active:
            return AvailabilityResult(
                available=False, reason="Parking spot is not available", code="SPOT_INACTIVE"
            )
        try:
            validate_against_schedule(window, spot.schedule, spot.timezone)
        except ValidationException as exc:
            return AvailabilityResult(available=False, reason=exc.message, code=exc.code)

        with self.reading():
            conflicts = self.availability.find_conflicts(
                spot_id, window.start, window.end, exclude_booking_id=exclude_booking_id
            )
        if conflicts:
            return AvailabilityResult(
                available=False,
                reason=GENERIC_CONFLICT_MESSAGE,
                code="BOOKING_CONFLICT",
                conflicts=tuple(conflicts),
            )
        return AvailabilityResult(available=True)

    # Listings

    @BaseService.measure_operation("list_renter_bookings")
    def list_renter_bookings(
        self,
        caller: Caller,
        page: int = 1,
        limit: Optional[int] = None,
        status: Union[BookingStatus, str, None] = None,
    ) -> PaginatedBookings:
        """Bookings made by ``caller``, newest first, with their spots resolved."""
        page, limit = self._pagination(page, limit)
        status_filter = self._parse_status(status) if status else None
        with self.reading():
            items, total = self.repository.list_for_renter(
                caller.user_id, status=status_filter, offset=(page - 1) * limit, limit=limit
            )
        return PaginatedBookings(
            items=items, total=total, page=page, limit=limit, spots=self._spots_for(items)
        )

    @BaseService.measure_operation("list_host_bookings")
    def list_host_bookings(
        self,
        caller: Caller,
        page: int = 1,
        limit: Optional[int] = None,
        status: Union[BookingStatus, str, None] = None,
    ) -> PaginatedBookings:
        """Bookings on any spot owned by ``caller``, newest first. Hosts only."""
        if not caller.is_host:
            raise ForbiddenException(
                "Access denied - Host only",
                code="HOST_ONLY",
                details={"role": caller.role.value},
            )
        page, limit = self._pagination(page, limit)
        status_filter = self._parse_status(status) if status else None
        spot_ids = self.spots.list_owner_spot_ids(caller.user_id)
        with self.reading():
            items, total = self.repository.list_for_spots(
                spot_ids, status=status_filter, offset=(page - 1) * limit, limit=limit
            )
        return PaginatedBookings(
            items=items, total=total, page=page, limit=limit, spots=self._spots_for(items)
        )

    # Helpers

    def _require_booking(self, booking_id: str) -> Booking:
        with self.reading():
            booking = self.repository.get_by_id(booking_id) if booking_id else None
        if booking is None:
            raise NotFoundException(
                "Booking not found", code="BOOKING_NOT_FOUND", details={"booking_id": booking_id}
            )
        return booking

    def _spots_for(self, bookings: List[Booking]) -> Dict[str, SpotSnapshot]:
        """One lookup per distinct spot on the page; vanished spots are left out."""
        resolved: Dict[str, SpotSnapshot] = {}
        for spot_id in dict.fromkeys(b.spot_id for b in bookings):
            spot = self.spots.get_spot(spot_id)
            if spot is not None:
                resolved[spot_id] = spot
        return resolved

    def _require_spot(self, spot_id: str) -> SpotSnapshot:
        spot = self.spots.get_spot(spot_id)
        if spot is None:
            raise NotFoundException(
                "Parking spot not found", code="SPOT_NOT_FOUND", details={"spot_id": spot_id}
            )
        return spot

    def _resolve_party(
        self, booking: Booking, spot: Optional[SpotSnapshot], caller: Caller
    ) -> BookingParty:
        if booking.renter_id == caller.user_id:
            return BookingParty.RENTER
        if spot is not None and spot.owner_id == caller.user_id:
            return BookingParty.SPOT_OWNER
        raise ForbiddenException(
            "Access denied", code="ACCESS_DENIED", details={"booking_id": booking.id}
        )

    def _verify_vehicle_owner(self, vehicle_id: str, caller: Caller) -> None:
        owner_id = self.vehicles.get_vehicle_owner(vehicle_id)
        if owner_id is None or owner_id != caller.user_id:
            raise ValidationException(
                "Invalid vehicle selected",
                code="INVALID_VEHICLE",
                details={"vehicle_id": vehicle_id},
            )

    @staticmethod
    def _coerce_vehicle_info(
        vehicle_info: Union[VehicleInfo, Mapping[str, Any], None]
    ) -> VehicleInfo:
        if isinstance(vehicle_info, VehicleInfo):
            return VehicleInfo.create(
                vehicle_info.license_plate,
                make=vehicle_info.make,
                model=vehicle_info.model,
                color=vehicle_info.color,
            )
        return VehicleInfo.from_mapping(vehicle_info)

    @staticmethod
    def _clean_special_instructions(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        limit = settings.max_special_instructions_length
        if len(cleaned) > limit:
            raise ValidationException(
                f"Special instructions cannot exceed {limit} characters",
                code="SPECIAL_INSTRUCTIONS_TOO_LONG",
                details={"field": "special_instructions", "max_length": limit},
            )
        return cleaned or None

    @staticmethod
    def _parse_status(value: Union[BookingStatus, str]) -> BookingStatus:
        try:
            return value if isinstance(value, BookingStatus) else BookingStatus(str(value).lower())
        except ValueError:
            raise ValidationException(
                f"Invalid booking status: {value}",
                code="INVALID_STATUS",
                details={"field": "status", "allowed": [s.value for s in BookingStatus]},
            )

    @staticmethod
    def _parse_payment_status(value: Union[PaymentStatus, str]) -> PaymentStatus:
        try:
            parsed = value if isinstance(value, PaymentStatus) else PaymentStatus(str(value).lower())
        except ValueError:
            parsed = None
        if parsed not in SETTABLE_PAYMENT_STATUSES:
            raise ValidationException(
                f"Invalid payment status: {value}",
                code="INVALID_PAYMENT_STATUS",
                details={
                    "field": "payment_status",
                    "allowed": sorted(s.value for s in SETTABLE_PAYMENT_STATUSES),
                },
            )
        return parsed

    @staticmethod
    def _pagination(page: int, limit: Optional[int]) -> Tuple[int, int]:
        limit = settings.default_page_size if limit is None else limit
        if page < 1:
            raise ValidationException(
                "Page must be at least 1", code="INVALID_PAGINATION", details={"field": "page"}
            )
        if not 1 <= limit <= settings.max_page_size:
            raise ValidationException(
                f"Limit must be between 1 and {settings.max_page_size}",
                code="INVALID_PAGINATION",
                details={"field": "limit"},
            )
        return page, limit

    def _enforce_cancellation_window(self, booking: Booking, now: datetime) -> None:
        window_minutes = settings.cancellation_window_minutes
        minutes_until_start = (booking.start_time - now).total_seconds() / 60
        if minutes_until_start < window_minutes:
            raise CancellationWindowExpiredException(window_minutes, minutes_until_start)

    def _ensure_slot_still_free(self, booking: Booking) -> None:
        """Take the spot guard and re-check availability, ignoring the booking itself."""
        self.repository.lock_spot(booking.spot_id)
        conflicts = self.availability.find_conflicts(
            booking.spot_id, booking.start_time, booking.end_time, exclude_booking_id=booking.id
        )
        if conflicts:
            self._record_conflict("transition")
            raise BookingConflictException(
                GENERIC_CONFLICT_MESSAGE,
                details=self._conflict_details(
                    booking.spot_id, booking.start_time, booking.end_time, conflicts
                ),
            )

    def _flush_versioned(self, booking_id: str) -> None:
        # The instance is expired once the flush fails; only the plain id is safe to use
        try:
            self.repository.flush()
        except StaleDataError as exc:
            self.logger.warning(f"Concurrent update detected on booking {booking_id}")
            raise ConcurrentModificationException(booking_id) from exc

    @staticmethod
    def _conflict_details(
        spot_id: str, start: datetime, end: datetime, conflicts: List[Booking]
    ) -> dict[str, Any]:
        return {
            "spot_id": spot_id,
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "conflicting_booking_ids": [b.id for b in conflicts],
        }

    def _record_conflict(self, stage: str) -> None:
        self.logger.info(f"Booking conflict detected during {stage}")
        if settings.metrics_enabled:
            prometheus_metrics.inc_booking_conflict(stage)

    def _record_transition(self, from_status: str, to_status: str) -> None:
        if settings.metrics_enabled:
            prometheus_metrics.inc_booking_transition(from_status, to_status)

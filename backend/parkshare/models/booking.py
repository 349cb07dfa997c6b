# backend/parkshare/models/booking.py
"""
Booking model for the ParkShare platform.

Represents a renter's reservation of a host's parking spot for a
half-open time window [start_time, end_time).

Architecture: Bookings store the window, the frozen hourly rate and the
derived price directly, plus a value snapshot of the vehicle. The spot,
vehicle and renter are referenced by id only; their lifecycles belong to
other services. Bookings are never deleted; cancellation is a status.
"""

from datetime import datetime, timezone
import logging
from typing import Optional

from sqlalchemy import CheckConstraint, Column, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import composite

from ..core.enums import BookingStatus, PaymentStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from ..domain.vehicle_info import VehicleInfo
from .types import UTCDateTime

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    """
    Self-contained reservation of a parking spot.

    Design: ``total_hours`` and ``total_price`` are computed once at creation
    from the spot's rate at that moment (kept in ``hourly_rate``) and are never
    recomputed, even if the spot's rate changes later.
    """

    __tablename__ = "bookings"

    # Primary key
    id = Column(String(26), primary_key=True, default=generate_ulid)

    # References (owned by other services)
    renter_id = Column(String(64), nullable=False, index=True)
    spot_id = Column(String(64), nullable=False, index=True)
    vehicle_id = Column(String(64), nullable=False, index=True)

    # Reserved window, half-open
    start_time = Column(UTCDateTime(), nullable=False)
    end_time = Column(UTCDateTime(), nullable=False)

    # Pricing snapshot
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    total_hours = Column(Numeric(6, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Lifecycle
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = Column(
        String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True
    )
    payment_intent_id = Column(String(255), nullable=True, comment="External payment reference")

    # Vehicle snapshot
    vehicle_license_plate = Column(String(20), nullable=False)
    vehicle_make = Column(String(50), nullable=True)
    vehicle_model = Column(String(50), nullable=True)
    vehicle_color = Column(String(30), nullable=True)
    vehicle_info = composite(
        VehicleInfo, vehicle_license_plate, vehicle_make, vehicle_model, vehicle_color
    )

    special_instructions = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(UTCDateTime(), nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=_utcnow, onupdate=_utcnow)
    confirmed_at = Column(UTCDateTime(), nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)
    cancelled_at = Column(UTCDateTime(), nullable=True)
    cancelled_by_id = Column(String(64), nullable=True)

    # Optimistic concurrency: every UPDATE checks and bumps this
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'active', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed', 'refunded')",
            name="ck_bookings_payment_status",
        ),
        CheckConstraint("end_time > start_time", name="ck_bookings_time_order"),
        CheckConstraint("total_price >= 0", name="ck_bookings_price_non_negative"),
        CheckConstraint("total_hours > 0", name="ck_bookings_hours_positive"),
        # Overlap lookups: spot + status narrowed, then range compare
        Index("ix_bookings_spot_status_window", "spot_id", "status", "start_time", "end_time"),
        Index("ix_bookings_renter_created", "renter_id", "created_at"),
        Index("ix_bookings_status_start", "status", "start_time"),
        Index("ix_bookings_payment_created", "payment_status", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Booking {self.id}: renter={self.renter_id}, spot={self.spot_id}, "
            f"window={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def is_cancellable(self) -> bool:
        """Check if the renter may still cancel this booking."""
        return self.status in (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)

    @property
    def duration_minutes(self) -> int:
        return round((self.end_time - self.start_time).total_seconds() / 60)

    @property
    def formatted_duration(self) -> str:
        """Human-readable duration, e.g. ``2 hours 30 minutes``."""
        total = float(self.total_hours)
        hours = int(total)
        minutes = round((total - hours) * 60)
        if hours == 0:
            return f"{minutes} minutes"
        hour_label = f"{hours} hour{'s' if hours > 1 else ''}"
        if minutes == 0:
            return hour_label
        return f"{hour_label} {minutes} minutes"

    @property
    def reference_number(self) -> str:
        """Short booking reference shown to renters and hosts."""
        return f"PK{str(self.id)[-8:].upper()}"

    def apply_status(
        self, new_status: BookingStatus, actor_id: str, at: Optional[datetime] = None
    ) -> None:
        """Set the status and the matching lifecycle timestamp."""
        at = at or _utcnow()
        self.status = new_status.value
        if new_status == BookingStatus.CONFIRMED:
            self.confirmed_at = at
        elif new_status == BookingStatus.COMPLETED:
            self.completed_at = at
        elif new_status == BookingStatus.CANCELLED:
            self.cancelled_at = at
            self.cancelled_by_id = actor_id
        self.updated_at = at
        logger.info(f"Booking {self.id} moved to {new_status.value} by user {actor_id}")

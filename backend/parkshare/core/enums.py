# backend/parkshare/core/enums.py
"""
Core enums for the ParkShare platform.

Status values are stored as their lowercase string values, so every
enum here inherits from (str, Enum).
"""

from enum import Enum


class RoleName(str, Enum):
    """Account roles supplied by the identity collaborator."""

    ADMIN = "admin"
    HOST = "host"
    USER = "user"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Awaiting host confirmation
    CONFIRMED = "confirmed"  # Host accepted, blocks the spot
    ACTIVE = "active"  # Vehicle parked, blocks the spot
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment state reported by the external payment collaborator."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# Statuses that make a booking occupy its spot
BLOCKING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.ACTIVE})

# Payment values the payment collaborator may set
SETTABLE_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.REFUNDED}
)

"""ORM models; importing this package registers every table on ``Base.metadata``."""

from .booking import Booking
from .spot_booking_guard import SpotBookingGuard

__all__ = ["Booking", "SpotBookingGuard"]

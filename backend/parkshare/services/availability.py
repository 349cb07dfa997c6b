# backend/parkshare/services/availability.py
"""
Availability oracle for parking spots.

A spot is available for a window when no confirmed or active booking on
that spot overlaps it. Pending bookings do not block; a spot may collect
several pending requests for the same window and the host confirms one.

Read-only. Callers that write must take the spot guard first
(``BookingRepository.lock_spot``) and then ask the oracle inside the same
transaction.
"""

from datetime import datetime
import logging
from typing import List, Optional

from ..models.booking import Booking
from ..repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open overlap test; symmetric, and touching endpoints never overlap."""
    return a_start < b_end and a_end > b_start


class AvailabilityOracle:
    """Answers "is this spot free for [start, end)?" from stored bookings."""

    def __init__(self, repository: BookingRepository):
        self.repository = repository

    def find_conflicts(
        self,
        spot_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        conflicts = self.repository.find_blocking_overlaps(
            spot_id, start_time, end_time, exclude_booking_id=exclude_booking_id
        )
        if conflicts:
            logger.info(
                f"Found {len(conflicts)} blocking bookings for spot {spot_id} "
                f"between {start_time.isoformat()} and {end_time.isoformat()}"
            )
        return conflicts

    def is_available(
        self,
        spot_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        return not self.repository.has_blocking_overlap(
            spot_id, start_time, end_time, exclude_booking_id=exclude_booking_id
        )

# backend/parkshare/repositories/booking_repository.py
"""
Booking Repository for ParkShare

Data access for bookings:
- Overlap queries against blocking (confirmed/active) bookings
- The per-spot write guard used to serialize check-then-write
- Paginated listings for renters and hosts
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import insert, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import BLOCKING_STATUSES, BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.spot_booking_guard import SpotBookingGuard
from .base_repository import BaseRepository

BLOCKING_STATUS_VALUES = sorted(status.value for status in BLOCKING_STATUSES)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    # Availability queries

    def find_blocking_overlaps(
        self,
        spot_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Booking]:
        """
        Confirmed or active bookings on ``spot_id`` that overlap ``[start, end)``.

        Half-open overlap: ``existing.start < end AND existing.end > start``,
        so back-to-back windows never conflict. Pending and cancelled bookings
        are ignored.
        """
        stmt = (
            self._select()
            .where(
                Booking.spot_id == spot_id,
                Booking.status.in_(BLOCKING_STATUS_VALUES),
                Booking.start_time < end_time,
                Booking.end_time > start_time,
            )
            .order_by(Booking.start_time)
        )
        if exclude_booking_id:
            stmt = stmt.where(Booking.id != exclude_booking_id)
        if limit:
            stmt = stmt.limit(limit)
        return self._execute_query(stmt)

    def has_blocking_overlap(
        self,
        spot_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """Efficient boolean form of ``find_blocking_overlaps``."""
        return bool(
            self.find_blocking_overlaps(
                spot_id, start_time, end_time, exclude_booking_id=exclude_booking_id, limit=1
            )
        )

    # Write guard

    def lock_spot(self, spot_id: str) -> None:
        """
        Take the per-spot write guard for the current transaction.

        Creates the guard row on first use, then bumps its version. The UPDATE
        holds the row lock (PostgreSQL) or the database write lock (SQLite)
        until commit or rollback, so a second writer for the same spot waits
        and then sees the first writer's booking.
        """
        try:
            self._ensure_guard_row(spot_id)
            self.db.execute(
                update(SpotBookingGuard)
                .where(SpotBookingGuard.spot_id == spot_id)
                .values(
                    version=SpotBookingGuard.version + 1,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking spot {spot_id}: {str(e)}")
            raise RepositoryException("Failed to acquire spot booking guard") from e

    def _ensure_guard_row(self, spot_id: str) -> None:
        values = {"spot_id": spot_id, "version": 0, "updated_at": datetime.now(timezone.utc)}
        dialect = self.dialect_name
        if dialect == "postgresql":
            self.db.execute(
                pg_insert(SpotBookingGuard).values(**values).on_conflict_do_nothing(
                    index_elements=["spot_id"]
                )
            )
            return
        if dialect == "sqlite":
            self.db.execute(
                sqlite_insert(SpotBookingGuard).values(**values).on_conflict_do_nothing(
                    index_elements=["spot_id"]
                )
            )
            return
        if self.db.get(SpotBookingGuard, spot_id) is not None:
            return
        try:
            with self.db.begin_nested():
                self.db.execute(insert(SpotBookingGuard).values(**values))
        except IntegrityError:
            # Another writer created it first
            pass

    # Listings

    def list_for_renter(
        self,
        renter_id: str,
        *,
        status: Optional[BookingStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Booking], int]:
        """Renter's bookings, newest first, with the unpaginated total."""
        stmt = self._select().where(Booking.renter_id == renter_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status.value)
        total = self._count(stmt)
        items = self._execute_query(
            stmt.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(offset).limit(limit)
        )
        return items, total

    def list_for_spots(
        self,
        spot_ids: Sequence[str],
        *,
        status: Optional[BookingStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Booking], int]:
        """Bookings on any of ``spot_ids``, newest first, with the unpaginated total."""
        if not spot_ids:
            return [], 0
        stmt = self._select().where(Booking.spot_id.in_(list(spot_ids)))
        if status is not None:
            stmt = stmt.where(Booking.status == status.value)
        total = self._count(stmt)
        items = self._execute_query(
            stmt.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(offset).limit(limit)
        )
        return items, total

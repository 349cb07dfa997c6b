"""Per-spot guard row serializing booking writes for one spot."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String

from ..database import Base
from .types import UTCDateTime


class SpotBookingGuard(Base):
    """
    One row per parking spot.

    Writers that may add a blocking booking to a spot bump ``version`` first,
    which takes the row (PostgreSQL) or database (SQLite) write lock until the
    transaction ends.
    """

    __tablename__ = "spot_booking_guards"

    spot_id = Column(String(64), primary_key=True)
    version = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        UTCDateTime(), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<SpotBookingGuard spot={self.spot_id} version={self.version}>"

# backend/tests/conftest.py
"""
Pytest configuration for the booking engine.

Every test gets its own in-memory SQLite database (StaticPool, one shared
connection) so commits made by the service are real commits and nothing
leaks between tests. Collaborators are in-memory fakes; the clock is fixed.
"""

import os

# Set test mode BEFORE any parkshare imports
os.environ.setdefault("PARKSHARE_ENVIRONMENT", "test")
os.environ.setdefault("PARKSHARE_DATABASE_URL", "sqlite:///:memory:")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from parkshare.core.enums import BookingStatus, PaymentStatus, RoleName
from parkshare.database import Base
from parkshare.domain.pricing import compute_price
from parkshare.domain.time_window import OperatingSchedule
from parkshare.domain.vehicle_info import VehicleInfo
from parkshare.integrations.listing_contracts import SpotSnapshot
from parkshare.models.booking import Booking
from parkshare.principal import Caller
from parkshare.services.booking_service import BookingService

# Import models so Base.metadata is populated for create_all.
import parkshare.models  # noqa: F401

# Monday 2030-01-07 08:00 UTC
NOW = datetime(2030, 1, 7, 8, 0, tzinfo=timezone.utc)

HOST_ID = "host-1"
OTHER_HOST_ID = "host-2"
RENTER_ID = "renter-1"
OTHER_RENTER_ID = "renter-2"
SPOT_ID = "spot-1"
SECOND_SPOT_ID = "spot-2"
VEHICLE_ID = "vehicle-1"
OTHER_VEHICLE_ID = "vehicle-2"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)


class FakeSpotDirectory:
    def __init__(self) -> None:
        self.spots: Dict[str, SpotSnapshot] = {}

    def add(self, spot: SpotSnapshot) -> SpotSnapshot:
        self.spots[spot.id] = spot
        return spot

    def get_spot(self, spot_id: str) -> Optional[SpotSnapshot]:
        return self.spots.get(spot_id)

    def list_owner_spot_ids(self, owner_id: str) -> List[str]:
        return [spot.id for spot in self.spots.values() if spot.owner_id == owner_id]


class FakeVehicleRegistry:
    def __init__(self, owners: Optional[Dict[str, str]] = None) -> None:
        self.owners = dict(owners or {})

    def get_vehicle_owner(self, vehicle_id: str) -> Optional[str]:
        return self.owners.get(vehicle_id)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def at() -> Callable[..., datetime]:
    """``at(10)`` is 10:00 UTC on the test day; ``days`` shifts forward."""

    def _at(hour: int, minute: int = 0, days: int = 0) -> datetime:
        return NOW.replace(hour=hour, minute=minute) + timedelta(days=days)

    return _at


@pytest.fixture
def spots() -> FakeSpotDirectory:
    directory = FakeSpotDirectory()
    directory.add(
        SpotSnapshot(
            id=SPOT_ID,
            owner_id=HOST_ID,
            hourly_rate=Decimal("5.00"),
            title="Covered driveway",
            address="12 Elm Street",
            city="Springfield",
            state="IL",
        )
    )
    directory.add(
        SpotSnapshot(
            id=SECOND_SPOT_ID,
            owner_id=HOST_ID,
            hourly_rate=Decimal("3.50"),
            schedule=OperatingSchedule(
                start_time="08:00",
                end_time="18:00",
                days=frozenset({"monday", "tuesday", "wednesday", "thursday", "friday"}),
            ),
        )
    )
    return directory


@pytest.fixture
def vehicles() -> FakeVehicleRegistry:
    return FakeVehicleRegistry({VEHICLE_ID: RENTER_ID, OTHER_VEHICLE_ID: OTHER_RENTER_ID})


@pytest.fixture
def renter() -> Caller:
    return Caller(user_id=RENTER_ID)


@pytest.fixture
def other_renter() -> Caller:
    return Caller(user_id=OTHER_RENTER_ID)


@pytest.fixture
def host() -> Caller:
    return Caller(user_id=HOST_ID, role=RoleName.HOST)


@pytest.fixture
def stranger() -> Caller:
    return Caller(user_id="stranger-1", role=RoleName.HOST)


@pytest.fixture
def booking_service(db, spots, vehicles, clock) -> BookingService:
    return BookingService(db, spots=spots, vehicles=vehicles, now=clock)


@pytest.fixture
def vehicle_info() -> VehicleInfo:
    return VehicleInfo(license_plate="ABC123", make="Toyota", model="Corolla", color="Blue")


@pytest.fixture
def seed_booking(db, at) -> Callable[..., Booking]:
    """Insert a booking row directly, bypassing the service rules."""

    def _seed(
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: BookingStatus = BookingStatus.CONFIRMED,
        spot_id: str = SPOT_ID,
        renter_id: str = RENTER_ID,
        rate: Decimal = Decimal("5.00"),
        created_at: Optional[datetime] = None,
    ) -> Booking:
        start = start or at(10)
        end = end or at(12)
        quote = compute_price(start, end, rate)
        booking = Booking(
            renter_id=renter_id,
            spot_id=spot_id,
            vehicle_id=VEHICLE_ID,
            start_time=start,
            end_time=end,
            hourly_rate=quote.hourly_rate,
            total_hours=quote.total_hours,
            total_price=quote.total_price,
            status=status.value,
            payment_status=PaymentStatus.PENDING.value,
            vehicle_info=VehicleInfo(license_plate="SEED01"),
        )
        if created_at is not None:
            booking.created_at = created_at
        db.add(booking)
        db.commit()
        return booking

    return _seed

# backend/tests/unit/services/test_booking_service_listings.py
from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest

from parkshare.core.enums import BookingStatus, RoleName
from parkshare.core.exceptions import ForbiddenException, ValidationException
from parkshare.integrations.listing_contracts import SpotSnapshot
from parkshare.principal import Caller
from parkshare.services.booking_service import PaginatedBookings


@pytest.fixture
def renter_history(seed_booking, at):
    """Twelve renter-1 bookings on consecutive days, created one minute apart."""
    created = []
    for i in range(12):
        created.append(
            seed_booking(
                at(10, days=i),
                at(11, days=i),
                status=BookingStatus.CONFIRMED if i % 3 else BookingStatus.PENDING,
                created_at=at(7) - timedelta(minutes=12 - i),
            )
        )
    return created


class TestRenterListing:
    def test_first_page_is_newest_first(self, booking_service, renter, renter_history):
        page = booking_service.list_renter_bookings(renter, page=1, limit=5)
        assert [b.id for b in page.items] == [b.id for b in reversed(renter_history)][:5]
        assert page.total == 12
        assert page.pages == 3
        assert page.has_next
        assert not page.has_prev

    def test_last_page(self, booking_service, renter, renter_history):
        page = booking_service.list_renter_bookings(renter, page=3, limit=5)
        assert len(page.items) == 2
        assert not page.has_next
        assert page.has_prev

    def test_page_past_the_end_is_empty(self, booking_service, renter, renter_history):
        page = booking_service.list_renter_bookings(renter, page=9, limit=5)
        assert page.items == []
        assert page.total == 12

    def test_default_limit(self, booking_service, renter, renter_history):
        page = booking_service.list_renter_bookings(renter)
        assert page.limit == 10
        assert len(page.items) == 10

    def test_status_filter(self, booking_service, renter, renter_history):
        page = booking_service.list_renter_bookings(renter, status="pending", limit=50)
        assert page.total == 4
        assert {b.status for b in page.items} == {"pending"}

    def test_only_own_bookings(self, booking_service, other_renter, seed_booking, renter_history):
        mine = seed_booking(renter_id="renter-2")
        page = booking_service.list_renter_bookings(other_renter)
        assert [b.id for b in page.items] == [mine.id]

    def test_empty(self, booking_service, other_renter):
        page = booking_service.list_renter_bookings(other_renter)
        assert page.total == 0
        assert page.pages == 0
        assert not page.has_next

    def test_spots_resolved_once_per_spot(self, booking_service, renter, spots, renter_history):
        spots.get_spot = Mock(wraps=spots.get_spot)
        page = booking_service.list_renter_bookings(renter, limit=5)
        spots.get_spot.assert_called_once_with("spot-1")
        assert page.spots["spot-1"].title == "Covered driveway"

    def test_vanished_spot_is_left_out(self, booking_service, renter, seed_booking):
        seed_booking(spot_id="spot-gone")
        page = booking_service.list_renter_bookings(renter)
        assert page.total == 1
        assert page.spots == {}

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101), (-1, 5)])
    def test_invalid_pagination(self, booking_service, renter, page, limit):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.list_renter_bookings(renter, page=page, limit=limit)
        assert exc_info.value.code == "INVALID_PAGINATION"

    def test_unknown_status_filter(self, booking_service, renter):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.list_renter_bookings(renter, status="archived")
        assert exc_info.value.code == "INVALID_STATUS"


class TestHostListing:
    def test_bookings_across_owned_spots(self, booking_service, host, seed_booking, at):
        first = seed_booking(spot_id="spot-1", created_at=at(6))
        second = seed_booking(
            at(9), at(10), spot_id="spot-2", renter_id="renter-2", created_at=at(7)
        )
        page = booking_service.list_host_bookings(host)
        assert [b.id for b in page.items] == [second.id, first.id]
        assert set(page.spots) == {"spot-1", "spot-2"}

    def test_other_hosts_spots_excluded(self, booking_service, spots, seed_booking):
        spots.add(SpotSnapshot(id="spot-9", owner_id="host-2", hourly_rate=Decimal("4.00")))
        seed_booking(spot_id="spot-9")
        other_host = Caller(user_id="host-2", role=RoleName.HOST)
        page = booking_service.list_host_bookings(other_host)
        assert page.total == 1
        assert page.items[0].spot_id == "spot-9"

    def test_host_without_spots(self, booking_service, stranger):
        page = booking_service.list_host_bookings(stranger)
        assert page == PaginatedBookings(items=[], total=0, page=1, limit=10)

    def test_renter_role_rejected(self, booking_service, renter):
        with pytest.raises(ForbiddenException) as exc_info:
            booking_service.list_host_bookings(renter)
        assert exc_info.value.code == "HOST_ONLY"
        assert exc_info.value.message == "Access denied - Host only"

    def test_admin_allowed(self, booking_service):
        admin = Caller(user_id="admin-1", role=RoleName.ADMIN)
        assert booking_service.list_host_bookings(admin).total == 0

    def test_status_filter(self, booking_service, host, seed_booking, at):
        seed_booking(at(10), at(11), status=BookingStatus.CANCELLED)
        kept = seed_booking(at(12), at(13), status=BookingStatus.ACTIVE)
        page = booking_service.list_host_bookings(host, status=BookingStatus.ACTIVE)
        assert [b.id for b in page.items] == [kept.id]


class TestPaginatedBookings:
    @pytest.mark.parametrize(
        "total,limit,pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 5, 5)]
    )
    def test_pages(self, total, limit, pages):
        assert PaginatedBookings(items=[], total=total, page=1, limit=limit).pages == pages

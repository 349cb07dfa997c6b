# backend/tests/unit/domain/test_pricing.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from parkshare.core.exceptions import ValidationException
from parkshare.domain.pricing import compute_price, round_money

START = datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc)


def test_two_hours_at_five_dollars():
    quote = compute_price(START, START + timedelta(hours=2), Decimal("5"))
    assert quote.total_hours == Decimal("2.00")
    assert quote.total_price == Decimal("10.00")
    assert quote.hourly_rate == Decimal("5.00")


def test_hours_rounded_before_price():
    # 20 minutes = 0.3333h -> 0.33h, 0.33 * 10 = 3.30
    quote = compute_price(START, START + timedelta(minutes=20), "10")
    assert quote.total_hours == Decimal("0.33")
    assert quote.total_price == Decimal("3.30")


def test_half_up_rounding_on_price():
    # 0.50h * 2.25 = 1.125 -> 1.13 (banker's rounding would give 1.12)
    quote = compute_price(START, START + timedelta(minutes=30), "2.25")
    assert quote.total_price == Decimal("1.13")


def test_half_up_rounding_on_hours():
    # 1h 0m 18s is exactly 1.005h -> 1.01
    quote = compute_price(START, START + timedelta(hours=1, seconds=18), "1")
    assert quote.total_hours == Decimal("1.01")


def test_float_rate_has_no_binary_noise():
    quote = compute_price(START, START + timedelta(hours=3), 5.1)
    assert quote.total_price == Decimal("15.30")


def test_sub_cent_rate_is_rounded_before_pricing():
    # 5.125 -> 5.13; 3.00 * 5.13 = 15.39 (unrounded rate would give 15.38)
    quote = compute_price(START, START + timedelta(hours=3), "5.125")
    assert quote.hourly_rate == Decimal("5.13")
    assert quote.total_price == Decimal("15.39")
    assert quote.total_price == round_money(quote.total_hours * quote.hourly_rate)


def test_is_deterministic():
    end = START + timedelta(hours=7, minutes=13)
    assert compute_price(START, end, "4.99") == compute_price(START, end, "4.99")


def test_zero_rate_is_free():
    quote = compute_price(START, START + timedelta(hours=1), 0)
    assert quote.total_price == Decimal("0.00")


@pytest.mark.parametrize("rate", ["-1", "abc", "NaN", "Infinity"])
def test_invalid_rates_rejected(rate):
    with pytest.raises(ValidationException) as exc_info:
        compute_price(START, START + timedelta(hours=1), rate)
    assert exc_info.value.code == "INVALID_HOURLY_RATE"


def test_round_money():
    assert round_money(Decimal("2.675")) == Decimal("2.68")
    assert round_money(Decimal("2.665")) == Decimal("2.67")

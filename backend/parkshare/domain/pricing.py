"""Booking price calculation with currency-style rounding."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from ..core.exceptions import ValidationException

CENTS = Decimal("0.01")
SECONDS_PER_HOUR = Decimal(3600)


@dataclass(frozen=True)
class PriceQuote:
    total_hours: Decimal
    total_price: Decimal
    hourly_rate: Decimal


def round_money(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value: Union[Decimal, float, int, str]) -> Decimal:
    # str() first so floats like 5.1 do not carry binary noise into the Decimal
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationException(
            "Hourly rate is invalid",
            code="INVALID_HOURLY_RATE",
            details={"hourly_rate": str(value)},
        ) from exc


def compute_price(
    start: datetime, end: datetime, hourly_rate: Union[Decimal, float, int, str]
) -> PriceQuote:
    """
    Compute ``(total_hours, total_price)`` for a window.

    ``total_hours`` is the window length in hours rounded to 2 places;
    ``hourly_rate`` is rounded to 2 places first and ``total_price`` is
    ``total_hours * hourly_rate`` rounded to 2 places, so the stored figures
    always reproduce the price. All rounding is ROUND_HALF_UP.
    """
    rate = to_decimal(hourly_rate)
    if not rate.is_finite() or rate < 0:
        raise ValidationException(
            "Hourly rate is invalid",
            code="INVALID_HOURLY_RATE",
            details={"hourly_rate": str(hourly_rate)},
        )

    delta = end - start
    # Exact microsecond arithmetic, no float division
    seconds = Decimal(delta.days * 86400 + delta.seconds) + Decimal(delta.microseconds) / Decimal(
        1_000_000
    )
    total_hours = round_money(seconds / SECONDS_PER_HOUR)
    rate = round_money(rate)
    total_price = round_money(total_hours * rate)
    return PriceQuote(total_hours=total_hours, total_price=total_price, hourly_rate=rate)

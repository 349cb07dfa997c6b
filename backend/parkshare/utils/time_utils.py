from __future__ import annotations

from datetime import datetime, time

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def time_to_minutes(t: time) -> int:
    """Convert time to minutes since midnight (0-1439)."""
    return t.hour * 60 + t.minute


def hhmm_to_minutes(value: str) -> int:
    """
    Parse an ``HH:MM`` string into minutes since midnight.

    ``24:00`` is accepted as end of day (1440).
    """
    try:
        hour_str, minute_str = value.strip().split(":")
        hour, minute = int(hour_str), int(minute_str)
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid time format: {value!r}. Expected HH:MM format.")
    if hour == 24 and minute == 0:
        return 24 * 60
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Time out of range: {value!r}")
    return hour * 60 + minute


def weekday_name(value: datetime) -> str:
    """Lowercase English weekday name, e.g. ``monday``."""
    return WEEKDAY_NAMES[value.weekday()]

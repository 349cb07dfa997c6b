"""
Time-window validation for booking requests.

Two independent checks:

* ``validate_window`` enforces the booking's own rules (well-formed,
  strictly future, ordered, between the minimum and maximum duration).
* ``validate_against_schedule`` enforces the spot's recurring weekly
  operating hours.

Both raise ``ValidationException`` with a reason ``code`` on the first
failed rule.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..utils.time_utils import WEEKDAY_NAMES, hhmm_to_minutes, time_to_minutes, weekday_name

SECONDS_PER_HOUR = 3600


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval ``[start, end)`` in UTC."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def hours(self) -> float:
        return self.duration.total_seconds() / SECONDS_PER_HOUR


def parse_instant(value: Union[datetime, str, None], field_name: str) -> datetime:
    """
    Parse a datetime or ISO-8601 string into an aware UTC datetime.

    Naive values are treated as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        candidate = value.strip()
        if candidate.endswith(("Z", "z")):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            raise ValidationException(
                "Invalid date format",
                code="INVALID_DATETIME",
                details={"field": field_name, "value": value},
            )
    else:
        raise ValidationException(
            "Missing required fields",
            code="MISSING_REQUIRED_FIELDS",
            details={"field": field_name},
        )

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def validate_window(
    start: Union[datetime, str],
    end: Union[datetime, str],
    now: datetime,
    *,
    min_hours: Optional[float] = None,
    max_hours: Optional[float] = None,
) -> TimeWindow:
    """
    Check a requested window against the absolute booking rules.

    Rules run in order and stop at the first failure:
    parseable instants, start strictly after ``now``, end after start,
    then ``min_hours <= duration <= max_hours``.
    """
    min_hours = settings.min_booking_hours if min_hours is None else min_hours
    max_hours = settings.max_booking_hours if max_hours is None else max_hours

    start_dt = parse_instant(start, "start_time")
    end_dt = parse_instant(end, "end_time")
    now_utc = parse_instant(now, "now")

    if start_dt <= now_utc:
        raise ValidationException(
            "Start time must be in the future",
            code="START_NOT_IN_FUTURE",
            details={"field": "start_time"},
        )

    if end_dt <= start_dt:
        raise ValidationException(
            "End time must be after start time",
            code="END_BEFORE_START",
            details={"field": "end_time"},
        )

    window = TimeWindow(start=start_dt, end=end_dt)
    if window.hours < min_hours:
        raise ValidationException(
            f"Minimum booking duration is {round(min_hours * 60)} minutes",
            code="DURATION_TOO_SHORT",
            details={"field": "end_time", "min_hours": min_hours, "hours": round(window.hours, 4)},
        )
    if window.hours > max_hours:
        raise ValidationException(
            f"Maximum booking duration is {max_hours:g} hours",
            code="DURATION_TOO_LONG",
            details={"field": "end_time", "max_hours": max_hours, "hours": round(window.hours, 4)},
        )
    return window


@dataclass(frozen=True)
class OperatingSchedule:
    """
    A spot's recurring weekly availability.

    ``start_time``/``end_time`` are ``HH:MM`` strings; ``days`` holds
    lowercase weekday names. Empty ``days`` means every day.
    """

    start_time: Optional[str] = None
    end_time: Optional[str] = None
    days: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        normalized = frozenset(str(day).strip().lower() for day in self.days)
        unknown = normalized - set(WEEKDAY_NAMES)
        if unknown:
            raise ValueError(f"Unknown weekday names: {sorted(unknown)}")
        object.__setattr__(self, "days", normalized)
        for value in (self.start_time, self.end_time):
            if value:
                hhmm_to_minutes(value)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["OperatingSchedule"]:
        if not data:
            return None
        days: Iterable[str] = data.get("days") or ()
        return cls(
            start_time=data.get("start_time") or data.get("startTime"),
            end_time=data.get("end_time") or data.get("endTime"),
            days=frozenset(days),
        )

    @property
    def has_hours(self) -> bool:
        return bool(self.start_time and self.end_time)


def resolve_timezone(tz: Union[str, tzinfo, None]) -> tzinfo:
    if tz is None:
        tz = settings.schedule_timezone
    if isinstance(tz, str):
        try:
            return ZoneInfo(tz)
        except ZoneInfoNotFoundError:
            raise ValueError(f"Unknown timezone: {tz}")
    return tz


def validate_against_schedule(
    window: TimeWindow,
    schedule: Optional[OperatingSchedule],
    tz: Union[str, tzinfo, None] = None,
) -> None:
    """
    Check that a window sits inside the spot's declared operating hours.

    Start and end are converted to the spot's local time. Both weekdays must
    be listed (when days are restricted), the start's time of day must not be
    before the opening time and the end's time of day must not be after the
    closing time.
    """
    if schedule is None:
        return

    zone = resolve_timezone(tz)
    local_start = window.start.astimezone(zone)
    local_end = window.end.astimezone(zone)

    if schedule.days:
        start_day = weekday_name(local_start)
        end_day = weekday_name(local_end)
        if start_day not in schedule.days or end_day not in schedule.days:
            raise ValidationException(
                "Parking spot is not available on selected days",
                code="OUTSIDE_OPERATING_DAYS",
                details={
                    "start_day": start_day,
                    "end_day": end_day,
                    "allowed_days": sorted(schedule.days, key=WEEKDAY_NAMES.index),
                },
            )

    if schedule.has_hours:
        open_minutes = hhmm_to_minutes(schedule.start_time)  # type: ignore[arg-type]
        close_minutes = hhmm_to_minutes(schedule.end_time)  # type: ignore[arg-type]
        start_minutes = time_to_minutes(local_start.time())
        end_minutes = time_to_minutes(local_end.time())
        if start_minutes < open_minutes or end_minutes > close_minutes:
            raise ValidationException(
                f"Parking spot is only available from {schedule.start_time} to {schedule.end_time}",
                code="OUTSIDE_OPERATING_HOURS",
                details={"open": schedule.start_time, "close": schedule.end_time},
            )

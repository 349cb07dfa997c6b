# backend/parkshare/domain/booking_state_machine.py
"""
Booking status state machine.

The single authorization table for status changes. Handlers and services
ask ``can_transition(party, from, to)`` instead of comparing role strings.

    pending   -> confirmed   spot owner
    pending   -> cancelled   renter
    confirmed -> active      either party
    confirmed -> cancelled   either party, cancellation window applies
    active    -> completed   either party
    active    -> cancelled   either party, cancellation window applies

``completed`` and ``cancelled`` are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple, Union

from ..core.enums import BookingStatus
from ..core.exceptions import ForbiddenException, InvalidTransitionException


class BookingParty(str, Enum):
    """Caller's relationship to a booking."""

    RENTER = "renter"
    SPOT_OWNER = "spot_owner"


EITHER_PARTY: FrozenSet[BookingParty] = frozenset({BookingParty.RENTER, BookingParty.SPOT_OWNER})


@dataclass(frozen=True)
class TransitionRule:
    allowed_parties: FrozenSet[BookingParty]
    requires_cancellation_window: bool = False


_TRANSITIONS: Mapping[Tuple[BookingStatus, BookingStatus], TransitionRule] = MappingProxyType(
    {
        (BookingStatus.PENDING, BookingStatus.CONFIRMED): TransitionRule(
            frozenset({BookingParty.SPOT_OWNER})
        ),
        (BookingStatus.PENDING, BookingStatus.CANCELLED): TransitionRule(
            frozenset({BookingParty.RENTER})
        ),
        (BookingStatus.CONFIRMED, BookingStatus.ACTIVE): TransitionRule(EITHER_PARTY),
        (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): TransitionRule(
            EITHER_PARTY, requires_cancellation_window=True
        ),
        (BookingStatus.ACTIVE, BookingStatus.COMPLETED): TransitionRule(EITHER_PARTY),
        (BookingStatus.ACTIVE, BookingStatus.CANCELLED): TransitionRule(
            EITHER_PARTY, requires_cancellation_window=True
        ),
    }
)

TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED}
)


def _status(value: Union[BookingStatus, str]) -> BookingStatus:
    return value if isinstance(value, BookingStatus) else BookingStatus(value)


def allowed_targets(current: Union[BookingStatus, str]) -> FrozenSet[BookingStatus]:
    """Statuses reachable in one step from ``current``."""
    source = _status(current)
    return frozenset(to for (frm, to) in _TRANSITIONS if frm == source)


def is_legal_transition(current: Union[BookingStatus, str], target: Union[BookingStatus, str]) -> bool:
    return (_status(current), _status(target)) in _TRANSITIONS


def can_transition(
    party: BookingParty,
    current: Union[BookingStatus, str],
    target: Union[BookingStatus, str],
) -> bool:
    """True when the pair is legal and ``party`` may trigger it."""
    rule = _TRANSITIONS.get((_status(current), _status(target)))
    return rule is not None and party in rule.allowed_parties


def requires_cancellation_window(
    current: Union[BookingStatus, str], target: Union[BookingStatus, str]
) -> bool:
    rule = _TRANSITIONS.get((_status(current), _status(target)))
    return bool(rule and rule.requires_cancellation_window)


def assert_transition(
    party: BookingParty,
    current: Union[BookingStatus, str],
    target: Union[BookingStatus, str],
) -> TransitionRule:
    """
    Return the rule for a transition or raise.

    Raises:
        InvalidTransitionException: the pair is not in the table
        ForbiddenException: the pair is legal but ``party`` may not trigger it
    """
    source, destination = _status(current), _status(target)
    rule = _TRANSITIONS.get((source, destination))
    if rule is None:
        raise InvalidTransitionException(source.value, destination.value)
    if party not in rule.allowed_parties:
        if destination == BookingStatus.CONFIRMED:
            message = "Only hosts can confirm bookings"
        elif source == BookingStatus.PENDING and destination == BookingStatus.CANCELLED:
            message = "Only booking owner can cancel pending bookings"
        else:
            message = f"You cannot change status from {source.value} to {destination.value}"
        raise ForbiddenException(
            message,
            code="TRANSITION_NOT_PERMITTED",
            details={"from": source.value, "to": destination.value, "party": party.value},
        )
    return rule

"""
Contracts for the listing service that owns parking spots and vehicles.

The booking engine only reads from these collaborators. Implementations
return ``None`` for unknown ids and raise ``CollaboratorException`` for
anything else that goes wrong.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Protocol, runtime_checkable

from ..domain.pricing import to_decimal
from ..domain.time_window import OperatingSchedule, resolve_timezone


@dataclass(frozen=True)
class SpotSnapshot:
    """The subset of a parking spot the booking engine needs."""

    id: str
    owner_id: str
    hourly_rate: Decimal
    active: bool = True
    schedule: Optional[OperatingSchedule] = None
    timezone: Optional[str] = None
    title: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    images: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Unknown zone names fail here rather than during a later schedule check
        if self.timezone is not None:
            resolve_timezone(self.timezone)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SpotSnapshot":
        """Build from the listing service JSON representation."""
        tz_name = payload.get("timezone")
        return cls(
            id=str(payload.get("id") or payload.get("_id")),
            owner_id=str(payload.get("owner_id") or payload.get("owner")),
            hourly_rate=to_decimal(payload.get("hourly_rate", payload.get("price_per_hour"))),
            active=bool(payload.get("active", True)),
            schedule=OperatingSchedule.from_mapping(payload.get("availability")),
            timezone=str(tz_name) if tz_name else None,
            title=payload.get("title"),
            address=payload.get("address"),
            city=payload.get("city"),
            state=payload.get("state"),
            images=tuple(payload.get("images") or ()),
        )

    def summary(self) -> dict[str, Any]:
        """Display fields resolved onto booking responses."""
        return {
            "id": self.id,
            "title": self.title,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "hourly_rate": float(self.hourly_rate),
            "images": list(self.images),
            "owner_id": self.owner_id,
        }


@runtime_checkable
class SpotDirectory(Protocol):
    def get_spot(self, spot_id: str) -> Optional[SpotSnapshot]:
        """Return the spot or ``None`` when it does not exist."""
        ...

    def list_owner_spot_ids(self, owner_id: str) -> List[str]:
        """Ids of every spot owned by ``owner_id``."""
        ...


@runtime_checkable
class VehicleRegistry(Protocol):
    def get_vehicle_owner(self, vehicle_id: str) -> Optional[str]:
        """Return the owning user id or ``None`` when the vehicle does not exist."""
        ...

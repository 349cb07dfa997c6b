"""Vehicle snapshot captured on a booking at creation time."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.exceptions import ValidationException

LICENSE_PLATE_MAX_LENGTH = 20
MAKE_MAX_LENGTH = 50
MODEL_MAX_LENGTH = 50
COLOR_MAX_LENGTH = 30


def _clean_optional(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    cleaned = str(value).strip()
    if not cleaned:
        return None
    if len(cleaned) > max_length:
        raise ValidationException(
            f"Vehicle {field} cannot exceed {max_length} characters",
            code="INVALID_VEHICLE_INFO",
            details={"field": f"vehicle_info.{field}", "max_length": max_length},
        )
    return cleaned


@dataclass(frozen=True)
class VehicleInfo:
    """
    Denormalized copy of the renter's vehicle.

    Copied by value when the booking is created so the record stays accurate
    after the source vehicle is edited or deleted.
    """

    license_plate: str
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def create(
        cls,
        license_plate: Optional[str],
        make: Optional[str] = None,
        model: Optional[str] = None,
        color: Optional[str] = None,
    ) -> "VehicleInfo":
        """Validate and normalize raw vehicle fields (plate trimmed and uppercased)."""
        plate = (license_plate or "").strip().upper()
        if not plate:
            raise ValidationException(
                "License plate is required",
                code="MISSING_REQUIRED_FIELDS",
                details={"field": "vehicle_info.license_plate"},
            )
        if len(plate) > LICENSE_PLATE_MAX_LENGTH:
            raise ValidationException(
                f"License plate cannot exceed {LICENSE_PLATE_MAX_LENGTH} characters",
                code="INVALID_VEHICLE_INFO",
                details={
                    "field": "vehicle_info.license_plate",
                    "max_length": LICENSE_PLATE_MAX_LENGTH,
                },
            )
        return cls(
            license_plate=plate,
            make=_clean_optional(make, "make", MAKE_MAX_LENGTH),
            model=_clean_optional(model, "model", MODEL_MAX_LENGTH),
            color=_clean_optional(color, "color", COLOR_MAX_LENGTH),
        )

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "VehicleInfo":
        if not data:
            raise ValidationException(
                "Vehicle info is required",
                code="MISSING_REQUIRED_FIELDS",
                details={"field": "vehicle_info"},
            )
        return cls.create(
            data.get("license_plate"),
            make=data.get("make"),
            model=data.get("model"),
            color=data.get("color"),
        )

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "license_plate": self.license_plate,
            "make": self.make,
            "model": self.model,
            "color": self.color,
        }

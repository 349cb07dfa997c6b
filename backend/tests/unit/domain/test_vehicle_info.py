# backend/tests/unit/domain/test_vehicle_info.py
import pytest

from parkshare.core.exceptions import ValidationException
from parkshare.domain.vehicle_info import VehicleInfo


def test_plate_is_trimmed_and_uppercased():
    info = VehicleInfo.create("  abc 123 ", make=" Honda ", model="", color=None)
    assert info == VehicleInfo(license_plate="ABC 123", make="Honda", model=None, color=None)


def test_missing_plate():
    with pytest.raises(ValidationException) as exc_info:
        VehicleInfo.create("   ")
    assert exc_info.value.code == "MISSING_REQUIRED_FIELDS"
    assert exc_info.value.details["field"] == "vehicle_info.license_plate"


def test_plate_too_long():
    with pytest.raises(ValidationException) as exc_info:
        VehicleInfo.create("X" * 21)
    assert exc_info.value.code == "INVALID_VEHICLE_INFO"


def test_color_too_long():
    with pytest.raises(ValidationException) as exc_info:
        VehicleInfo.create("ABC123", color="c" * 31)
    assert exc_info.value.details["field"] == "vehicle_info.color"


def test_from_mapping_requires_data():
    with pytest.raises(ValidationException):
        VehicleInfo.from_mapping(None)


def test_from_mapping_round_trip_to_dict():
    data = {"license_plate": "xyz789", "make": "Ford", "model": "Focus", "color": "Red"}
    assert VehicleInfo.from_mapping(data).to_dict() == {**data, "license_plate": "XYZ789"}


def test_is_immutable():
    info = VehicleInfo(license_plate="ABC123")
    with pytest.raises(AttributeError):
        info.license_plate = "OTHER"  # type: ignore[misc]

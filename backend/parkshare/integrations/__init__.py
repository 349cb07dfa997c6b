"""External service integrations for the ParkShare booking engine."""

from .listing_client import ListingServiceClient
from .listing_contracts import SpotDirectory, SpotSnapshot, VehicleRegistry

__all__ = ["ListingServiceClient", "SpotDirectory", "SpotSnapshot", "VehicleRegistry"]

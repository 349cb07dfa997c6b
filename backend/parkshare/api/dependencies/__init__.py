# backend/parkshare/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_caller
from .database import get_db
from .services import get_booking_service, get_listing_client

__all__ = [
    # Auth
    "get_current_caller",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_listing_client",
]

# backend/parkshare/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...integrations import ListingServiceClient
from ...services.booking_service import BookingService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_listing_client() -> ListingServiceClient:
    """Shared listing service client (spots and vehicles)."""
    return ListingServiceClient(
        base_url=settings.listing_service_url,
        timeout=settings.collaborator_timeout_seconds,
    )


def get_booking_service(
    db: Session = Depends(get_db),
    listing_client: ListingServiceClient = Depends(get_listing_client),
) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session
        listing_client: Spot and vehicle collaborator

    Returns:
        BookingService instance
    """
    return BookingService(db, spots=listing_client, vehicles=listing_client)

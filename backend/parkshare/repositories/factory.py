# backend/parkshare/repositories/factory.py
"""
Repository Factory for ParkShare

Centralizes repository construction so services receive their data
access objects the same way everywhere.
"""

from sqlalchemy.orm import Session

from .booking_repository import BookingRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        """Create repository for booking operations."""
        return BookingRepository(db)

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory

__all__ = ["BaseRepository", "BookingRepository", "RepositoryFactory"]

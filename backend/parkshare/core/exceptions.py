# backend/parkshare/core/exceptions.py
"""
Domain-specific exceptions for the ParkShare booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every exception carries a machine-readable ``code`` and a ``details``
mapping naming the offending field or rule, so callers can correct
their request without seeing storage internals.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when input or business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a referenced booking, spot or vehicle does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for a read or transition."""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class SelfBookingException(ValidationException):
    """Raised when a host tries to book one of their own spots."""

    def __init__(self, spot_id: str) -> None:
        super().__init__(
            message="You cannot book your own parking spot",
            code="SELF_BOOKING",
            details={"spot_id": spot_id},
        )


class BookingConflictException(ConflictException):
    """Raised when a booking window overlaps a confirmed or active booking."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Parking spot is not available for the selected time",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class ConcurrentModificationException(ConflictException):
    """Raised when a booking changed between read and write; the caller may retry."""

    def __init__(self, booking_id: str, expected_version: Optional[int] = None) -> None:
        details: Dict[str, Any] = {"booking_id": booking_id}
        if expected_version is not None:
            details["expected_version"] = expected_version
        super().__init__(
            message="Booking was modified by another request, please retry",
            code="CONCURRENT_MODIFICATION",
            details=details,
        )


class InvalidTransitionException(DomainException):
    """Raised when a requested status change is not legal from the current state."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, current_status: str, requested_status: str) -> None:
        super().__init__(
            message=f"Cannot change status from {current_status} to {requested_status}",
            code="INVALID_TRANSITION",
            details={"from": current_status, "to": requested_status},
        )


class CancellationWindowExpiredException(DomainException):
    """Raised when cancellation is attempted inside the pre-start guard window."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, window_minutes: int, minutes_until_start: float) -> None:
        hours = window_minutes / 60
        unit = "hour" if hours == 1 else "hours"
        super().__init__(
            message=f"Cannot cancel booking less than {hours:g} {unit} before start time",
            code="CANCELLATION_WINDOW_EXPIRED",
            details={
                "window_minutes": window_minutes,
                "minutes_until_start": round(minutes_until_start, 2),
            },
        )


class CollaboratorException(DomainException):
    """Raised when a spot, vehicle or identity lookup fails outside this engine."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, collaborator: str, operation: str, reason: Optional[str] = None) -> None:
        super().__init__(
            message=f"{collaborator} is unavailable, please retry later",
            code="COLLABORATOR_FAILURE",
            details={"collaborator": collaborator, "operation": operation, "reason": reason or ""},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """

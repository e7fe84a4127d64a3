# app/core/exceptions.py
"""Domain errors raised by the scheduling services.

Services never raise HTTPException; app.main translates these into the
JSON error envelope.
"""
from typing import Any, Optional


class SchedulingError(Exception):
    """Base error for the scheduling core."""
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details if self.details is not None else {},
            }
        }


class InvalidRequestError(SchedulingError):
    """Malformed time strings, out-of-range duration, non-future start."""
    status_code = 400
    code = "VALIDATION_ERROR"


class PermissionDeniedError(SchedulingError):
    """Acting identity lacks ownership or role for the operation."""
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(SchedulingError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(SchedulingError):
    """Overlaps a booking, falls outside availability, or wrong state."""
    status_code = 409
    code = "CONFLICT"

    ALREADY_BOOKED = "ALREADY_BOOKED"
    OUTSIDE_AVAILABILITY = "OUTSIDE_AVAILABILITY"
    INVALID_STATE = "INVALID_STATE"

    def __init__(self, message: str, reason: str, details: Optional[Any] = None):
        merged = {"reason": reason}
        if details:
            merged.update(details)
        super().__init__(message, merged)
        self.reason = reason


class StorageError(SchedulingError):
    """Storage or transaction failure; the whole operation was rolled back."""
    status_code = 500
    code = "INTERNAL_ERROR"

"""
Custom exceptions for the application.
Centralized error taxonomy shared by services, repositories and controllers.

Every error carries a machine-readable ``kind`` so callers can distinguish
failures programmatically, plus the HTTP status the API layer renders it with.
"""

from typing import Any, Dict, Optional


class SalonError(Exception):
    """Base class for all expected business failures."""

    kind = "server_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.kind,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(SalonError, ValueError):
    """Malformed or missing input: date format, enum membership, ranges."""

    kind = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if field and not details:
            details = {"field": field}
        super().__init__(message, details)
        self.field = field


class NotFoundError(SalonError):
    """Referenced entity is absent (or not available for booking)."""

    kind = "not_found"
    status_code = 404


class ConflictError(SalonError):
    """Uniqueness violation, e.g. a slot that is already taken."""

    kind = "conflict"
    status_code = 409


class InvalidStateError(SalonError):
    """Operation is illegal for the current lifecycle state."""

    kind = "invalid_state"
    status_code = 400


class AlreadyDoneError(SalonError):
    """Idempotency violation, e.g. a second check-in on the same day."""

    kind = "already_done"
    status_code = 400


class ServerError(SalonError):
    """Unexpected or storage failure. Rendered opaquely to callers."""

    kind = "server_error"
    status_code = 500

"""
Domain error taxonomy

Services raise these; the handlers registered in main.py turn them into the
standard ``{"success": false, "message": ...}`` envelope with the matching
HTTP status code.
"""

from typing import Any, Optional


class HandyHubError(Exception):
    """Base class for all expected domain failures"""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(HandyHubError):
    status_code = 400
    default_message = "Validation errors"


class AuthenticationError(HandyHubError):
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(HandyHubError):
    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFoundError(HandyHubError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(HandyHubError):
    status_code = 409
    default_message = "Resource conflict"


class AlreadyExistsError(ConflictError):
    default_message = "Resource already exists"


class InvalidTransitionError(HandyHubError):
    status_code = 400
    default_message = "Invalid status transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change status from {current} to {requested}")


class InvalidStateError(HandyHubError):
    status_code = 400
    default_message = "Operation not allowed in the current state"


class RateLimitedError(HandyHubError):
    status_code = 429
    default_message = "Too many attempts"


# OTP failures


class InvalidOTPError(ValidationError):
    default_message = "Invalid OTP"


class OTPUsedError(ValidationError):
    default_message = "OTP has already been used"


class OTPExpiredError(ValidationError):
    default_message = "OTP has expired"


class OTPAttemptsExceededError(RateLimitedError):
    default_message = "Maximum OTP attempts exceeded"

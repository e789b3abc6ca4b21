"""
Application error taxonomy.

Every layer raises one of these at the point where the failure is
detected. The HTTP layer maps them to responses by class, never by
inspecting message text.
"""

from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors that are reported to the caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    message: str = "An internal error occurred"

    def __init__(self, message: Optional[str] = None, *, errors: Optional[list[Any]] = None):
        self.message = message or self.message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "status": "error",
            "code": self.code,
            "message": self.message,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_failed"
    message = "Validation failed"


class DuplicateEmail(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "duplicate_email"
    message = "User with this email already exists"


class InvalidCredentials(AppError):
    """Unknown email and wrong password both raise this, with one message."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"
    message = "Invalid email or password"


class AccountDeactivated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "account_deactivated"
    message = "Account is deactivated. Please contact support."


class InvalidOrExpiredToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_or_expired_token"
    message = "Invalid or expired refresh token"


class SessionNotFound(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "session_not_found"
    message = "Invalid refresh token"


class MissingToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "missing_token"
    message = "Access token is required"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    message = "Invalid or expired access token"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    message = "Forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Resource not found"


class InternalError(AppError):
    """Unexpected failure; detail is logged, never returned."""

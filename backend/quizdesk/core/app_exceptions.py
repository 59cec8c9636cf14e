"""Application-specific exceptions for consistent error handling.

Every domain failure is an ``AppError`` subclass so the global handler can
render it with a stable HTTP status and machine-readable ``error_code``.
Services raise these directly; routers never translate them.
"""

from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Application error with standardized error code."""

    status_code_default: int = status.HTTP_400_BAD_REQUEST
    code_default: str = "BAD_REQUEST"
    message_default: str = "Request could not be processed"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: dict[str, Any] | list[Any] | None = None,
        status_code: int | None = None,
    ):
        """Initialize application error."""
        self.code = code or self.code_default
        self.message = message or self.message_default
        self.details = details
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail={
                "code": self.code,
                "message": self.message,
                "details": details,
            },
        )


class NotFoundError(AppError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code_default = "NOT_FOUND"
    message_default = "Resource not found"


class UnauthenticatedError(AppError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code_default = "UNAUTHORIZED"
    message_default = "Authentication required"


class ForbiddenError(AppError):
    status_code_default = status.HTTP_403_FORBIDDEN
    code_default = "FORBIDDEN"
    message_default = "Access denied"


class OutOfWindowError(AppError):
    """Quiz is not currently accepting attempts."""

    status_code_default = status.HTTP_403_FORBIDDEN
    code_default = "QUIZ_NOT_OPEN"
    message_default = "Quiz is not open for attempts"


class ConflictError(AppError):
    status_code_default = status.HTTP_409_CONFLICT
    code_default = "CONFLICT"
    message_default = "Resource conflict"


class AlreadyAttemptedError(ConflictError):
    code_default = "ALREADY_ATTEMPTED"
    message_default = "You have already completed this quiz"


class AlreadySubmittedError(ConflictError):
    code_default = "ALREADY_SUBMITTED"
    message_default = "Attempt already submitted"


class ExpiredError(AppError):
    """Attempt token is past its expiry."""

    status_code_default = status.HTTP_410_GONE
    code_default = "ATTEMPT_EXPIRED"
    message_default = "Quiz attempt token expired"


class InvalidTokenError(AppError):
    """Attempt token is unknown or no longer usable."""

    status_code_default = status.HTTP_401_UNAUTHORIZED
    code_default = "INVALID_ATTEMPT_TOKEN"
    message_default = "Invalid quiz attempt token"


class ValidationAppError(AppError):
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    code_default = "VALIDATION_ERROR"
    message_default = "Invalid request data"


class RateLimitedError(AppError):
    status_code_default = status.HTTP_429_TOO_MANY_REQUESTS
    code_default = "RATE_LIMITED"
    message_default = "Rate limit exceeded. Please try again later."


class InternalError(AppError):
    """Storage or transaction failure; never carries internal detail."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    code_default = "INTERNAL_ERROR"
    message_default = "An internal server error occurred"

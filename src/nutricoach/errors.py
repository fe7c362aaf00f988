"""Application error types mapped onto HTTP responses."""

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(AppError):
    """Raised when a request has no valid session."""

    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "You must be logged in to access this resource"


class NotFoundError(AppError):
    """Raised when an entity is absent or not owned by the caller."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class BadRequestError(AppError):
    """Raised for input that passes schema checks but is still invalid."""

    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(AppError):
    """Raised when a write loses against a uniqueness constraint."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting update, please retry"


class RateLimitedError(AppError):
    """Raised when too many attempts were made in the current window."""

    code = "TOO_MANY_REQUESTS"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many attempts, please try again later"


class FeatureNotImplementedError(AppError):
    """Raised by endpoints that are declared but not available yet."""

    code = "NOT_IMPLEMENTED"
    status_code = status.HTTP_501_NOT_IMPLEMENTED
    default_message = "Not implemented"

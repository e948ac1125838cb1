from typing import Any, Optional


class ApiError(Exception):
    """Base exception for errors surfaced to API clients."""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, detail: Any = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(ApiError):
    """Malformed or missing client input."""
    status_code = 400
    default_message = "Invalid request"


class AuthError(ApiError):
    """Missing, malformed, invalid or expired credential."""
    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(ApiError):
    """Referenced entity does not exist."""
    status_code = 404
    default_message = "Resource not found"


class UpstreamError(ApiError):
    """The store or the auth service reported a failure."""
    status_code = 500
    default_message = "Internal server error"

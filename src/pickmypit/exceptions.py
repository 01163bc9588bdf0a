"""Application error taxonomy.

Every error raised from a service or dependency maps to one HTTP status and is
rendered by the global handlers in ``pickmypit.middleware.error_handler`` as
``{"success": false, "message": ..., "errors": ...}``.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map to a client-visible response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, errors: Any = None) -> None:  # noqa: ANN401
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Authentication required"

    def __init__(self, message: str | None = None, code: str = "token_invalid") -> None:
        super().__init__(message, errors={"code": code})
        self.code = code


class AuthorizationError(AppError):
    """Authenticated principal lacks the role or ownership required."""

    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    """Resource id has no matching record."""

    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    """Unique constraint violation or a state conflict."""

    status_code = 409
    default_message = "Resource already exists"


class ExternalServiceError(AppError):
    """A third-party service (image host, OAuth provider) failed."""

    status_code = 502
    default_message = "External service error"

    def __init__(self, message: str | None = None, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable
        if retryable:
            self.status_code = 503

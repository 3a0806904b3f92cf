"""
Error taxonomy. Every ApiError maps to an HTTP status and a {success: false, message, error?} envelope.
Raised from dependencies, routers and services; rendered by the handlers registered in main.
"""
from fastapi import status


class ApiError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers: dict[str, str] | None = None

    def __init__(self, message: str, error: str | None = None):
        super().__init__(message)
        self.message = message
        self.error = error


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationFailed(BadRequest):
    """400 carrying the list of failed rule messages."""

    def __init__(self, errors: list[str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors)


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT


class ServerError(ApiError):
    """500 with a per-operation message; the original exception is logged, not returned."""


class HygraphError(Exception):
    """Upstream GraphQL failure: transport error, non-2xx status, GraphQL errors or missing data."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ClerkError(Exception):
    """Clerk Backend API call failed."""

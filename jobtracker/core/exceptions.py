"""Custom exceptions for the application."""

from typing import Any

from fastapi import HTTPException, status

DEFAULT_ERROR_MESSAGE = "Something went wrong"


class TrackerError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class AppwriteError(TrackerError):
    """Raised when a request to the Appwrite backend fails."""

    NETWORK_FAILURE = "network_failure"

    def __init__(
        self,
        status_code: int,
        message: str,
        error_type: str | None = None,
        response_data: dict | None = None,
    ):
        self.status_code = status_code
        self.error_type = error_type
        self.response_data = response_data or {}
        super().__init__(message)

    @property
    def is_network_error(self) -> bool:
        return self.error_type == self.NETWORK_FAILURE

    @property
    def is_client_error(self) -> bool:
        """4xx responses that repeating the request will not fix."""
        return 400 <= self.status_code < 500 and self.status_code not in (408, 429)


class AuthenticationError(TrackerError):
    """Raised when the identity service never confirms a new session."""


class RedirectRequired(TrackerError):
    """Raised by route guards to send the caller to another view."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"Redirect to {location}")


def error_message(error: Any) -> str:
    """Extract a user-facing message from an arbitrary error value."""
    data = getattr(error, "response_data", None)
    if isinstance(error, dict):
        data = error.get("data")
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    if isinstance(error, BaseException):
        return str(getattr(error, "message", None) or error) or DEFAULT_ERROR_MESSAGE
    if isinstance(error, str) and error:
        return error
    return DEFAULT_ERROR_MESSAGE


def describe_detail_error(error: Any, application_id: str) -> tuple[int, str]:
    """Map a detail-view failure to an HTTP status and readable description."""
    message = error_message(error)
    lowered = message.lower()
    code = getattr(error, "status_code", None)
    if code == 404 or "not found" in lowered or "404" in lowered:
        return status.HTTP_404_NOT_FOUND, (
            f'Application with ID "{application_id}" could not be found. '
            "It may have been deleted or you may not have access to it."
        )
    if code in (401, 403) or "permission" in lowered or "401" in lowered:
        return (
            status.HTTP_403_FORBIDDEN,
            "You do not have permission to view this application.",
        )
    network = getattr(error, "is_network_error", False)
    if network or "network" in lowered or "fetch" in lowered:
        return status.HTTP_502_BAD_GATEWAY, (
            "Unable to load the application due to a network error. "
            "Please check your connection and try again."
        )
    return status.HTTP_502_BAD_GATEWAY, (
        message or "An unexpected error occurred while loading the application."
    )


def unauthorized_exception(detail: str = "Not authenticated") -> HTTPException:
    """Return a 401 Unauthorized exception."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
    )


def not_found_exception(detail: str = "Resource not found") -> HTTPException:
    """Return a 404 Not Found exception."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def backend_exception(error: AppwriteError, detail: str) -> HTTPException:
    """Return the HTTP error for a failed remote CRUD call."""
    status_code = (
        error.status_code
        if error.is_client_error
        else status.HTTP_502_BAD_GATEWAY
    )
    return HTTPException(status_code=status_code, detail=detail)

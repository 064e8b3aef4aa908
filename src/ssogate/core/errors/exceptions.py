"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("Role not found", resource="role", resource_id=str(role_id))
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    Example:
        raise UnauthorizedError("No active session")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """Raised when the caller lacks permission for an action.

    Example:
        raise ForbiddenError("Organization admin required")
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class BadRequestError(AppException):
    """Raised for general client errors.

    Example:
        raise BadRequestError("Invalid or expired OAuth state", error_code="invalid_state")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class SessionRegenerateError(AppException):
    """Raised when the HTTP session identifier cannot be regenerated."""

    message = "Session regeneration failed"
    error_code = "session_regenerate_failed"
    status_code = 500


class SessionBindError(AppException):
    """Raised when a logged-in session cannot be bound to the session store."""

    message = "Session could not be established"
    error_code = "session_bind_failed"
    status_code = 401


class PlatformMisconfiguredError(AppException):
    """Raised when the deployment violates a platform-mode invariant.

    Example:
        raise PlatformMisconfiguredError("Open source mode requires exactly one organization")
    """

    message = "Platform is misconfigured"
    error_code = "platform_misconfigured"
    status_code = 500

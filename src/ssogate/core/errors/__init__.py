"""Error handling module with RFC 7807 Problem Details."""

from ssogate.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    PlatformMisconfiguredError,
    SessionBindError,
    SessionRegenerateError,
    UnauthorizedError,
)
from ssogate.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "BadRequestError",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "NotFoundError",
    "PlatformMisconfiguredError",
    "ProblemDetail",
    "SessionBindError",
    "SessionRegenerateError",
    "UnauthorizedError",
    "register_exception_handlers",
]

"""SSO flow exceptions."""

from typing import Any

from ssogate.core.errors import AppException, BadRequestError
from ssogate.sso.schemas import SSOErrorKind


class ReconciliationError(AppException):
    """Raised inside the identity reconciler for any failed step.

    Never leaves the reconciler: it is collapsed into a LoginFailed value
    at the reconciler boundary.

    Example:
        raise ReconciliationError(SSOErrorKind.ROLE_NOT_FOUND, "Role not found")
    """

    message = "Identity reconciliation failed"
    status_code = 500

    def __init__(
        self,
        kind: SSOErrorKind,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.kind = kind
        super().__init__(message=message, error_code=kind.value, details=details)


class ProviderNotConfiguredError(BadRequestError):
    """Raised when a provider is asked for URLs after being deactivated.

    Example:
        raise ProviderNotConfiguredError("Auth0 SSO is not configured.")
    """

    message = "Provider is not configured"
    error_code = "provider_not_configured"

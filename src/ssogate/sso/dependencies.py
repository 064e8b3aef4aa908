"""FastAPI dependencies for the SSO flow.

Tests override these through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request

from ssogate.core.audit import AuditService
from ssogate.core.errors import ForbiddenError
from ssogate.core.sessions import RedisSessionStore, SessionStore
from ssogate.sso.establisher import SessionEstablisher
from ssogate.sso.reconciler import IdentityReconciler
from ssogate.sso.registry import ProviderRegistry, provider_registry
from ssogate.sso.schemas import LoggedInSession


def get_session_store() -> SessionStore:
    return RedisSessionStore()


def get_audit_service() -> AuditService:
    return AuditService()


def get_provider_registry() -> ProviderRegistry:
    return provider_registry


def get_reconciler(
    audit: Annotated[AuditService, Depends(get_audit_service)],
) -> IdentityReconciler:
    return IdentityReconciler(audit=audit)


def get_session_establisher(
    store: Annotated[SessionStore, Depends(get_session_store)],
    audit: Annotated[AuditService, Depends(get_audit_service)],
) -> SessionEstablisher:
    return SessionEstablisher(store, audit)


async def get_current_session(
    request: Request,
    establisher: Annotated[SessionEstablisher, Depends(get_session_establisher)],
) -> LoggedInSession:
    """Get the logged-in session bound to the request.

    Raises:
        UnauthorizedError: If no session is bound
    """
    return await establisher.current_session(request)


async def require_organization_admin(
    logged_in: Annotated[LoggedInSession, Depends(get_current_session)],
) -> LoggedInSession:
    """Require the session to hold the OWNER role of its organization.

    Raises:
        ForbiddenError: If the session is not an organization admin
    """
    if not logged_in.is_organization_admin:
        raise ForbiddenError(
            "Organization admin required",
            details={"user_id": str(logged_in.id)},
        )
    return logged_in


Reconciler = Annotated[IdentityReconciler, Depends(get_reconciler)]
Establisher = Annotated[SessionEstablisher, Depends(get_session_establisher)]
Registry = Annotated[ProviderRegistry, Depends(get_provider_registry)]
CurrentSession = Annotated[LoggedInSession, Depends(get_current_session)]
OrganizationAdmin = Annotated[LoggedInSession, Depends(require_organization_admin)]

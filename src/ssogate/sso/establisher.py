"""HTTP side of an SSO login: session binding, cookies and redirects.

The establisher turns a reconciliation result into a response. A success
regenerates the session id, binds the logged-in session, issues the
platform token cookies and redirects to the app. A failure redirects to
the sign-in page with the error as compact JSON in the query string.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from ssogate.config import Settings, settings
from ssogate.core.audit import AuditService, LoginActivityCode
from ssogate.core.auth import TokenPair, issue_token_pair
from ssogate.core.errors import (
    AppException,
    BadRequestError,
    SessionBindError,
    SessionRegenerateError,
    UnauthorizedError,
)
from ssogate.core.sessions import SessionStore
from ssogate.sso.errors import ProviderNotConfiguredError
from ssogate.sso.schemas import (
    LoggedInSession,
    LoginFailed,
    LoginResult,
    PublicSession,
    SSOErrorKind,
)


if TYPE_CHECKING:
    from ssogate.sso.base import SSOProvider
    from ssogate.sso.registry import ProviderRegistry


logger = structlog.get_logger()

LOGIN_SUCCESS_MESSAGE = "Logged in Successfully"
LOGOUT_SUCCESS_MESSAGE = "Logged out Successfully"


def signin_error_url(message: str, signin_path: str | None = None) -> str:
    """Build the sign-in URL carrying an error message as compact JSON."""
    error = quote(json.dumps({"message": message}, separators=(",", ":")), safe="")
    return f"{signin_path or settings.signin_path}?error={error}"


class SessionEstablisher:
    """Bind reconciled logins to HTTP sessions and tear them down on logout."""

    def __init__(
        self,
        store: SessionStore,
        audit: AuditService | None = None,
        config: Settings | None = None,
    ) -> None:
        self.store = store
        self.audit = audit or AuditService()
        self.config = config or settings

    @property
    def cookie_names(self) -> tuple[str, str, str]:
        return (
            self.config.session_cookie_name,
            self.config.access_token_cookie_name,
            self.config.refresh_token_cookie_name,
        )

    async def handle_result(self, request: Request, result: LoginResult) -> Response:
        """Respond to a reconciliation result.

        Raises:
            AppException: For a failure of any kind other than SSO_LOGIN_FAILED
        """
        if isinstance(result, LoginFailed):
            if result.kind == SSOErrorKind.SSO_LOGIN_FAILED:
                return RedirectResponse(
                    signin_error_url(result.message, self.config.signin_path),
                    status_code=302,
                )
            raise AppException(result.message, error_code=result.kind.value)
        return await self.establish(request, result.session)

    async def establish(self, request: Request, logged_in: LoggedInSession) -> Response:
        """Bind logged_in to a fresh session and redirect to the app.

        Raises:
            SessionRegenerateError: If a new session id cannot be issued
            SessionBindError: If the session cannot be stored
        """
        previous = request.cookies.get(self.config.session_cookie_name)
        try:
            session_id = await self.store.regenerate(previous)
        except Exception as exc:
            logger.exception("session_regenerate_failed", provider=logged_in.sso_provider)
            raise SessionRegenerateError() from exc

        try:
            await self.store.bind(session_id, logged_in.model_dump(mode="json"))
        except Exception as exc:
            logger.exception("session_bind_failed", provider=logged_in.sso_provider)
            raise SessionBindError() from exc

        tokens = issue_token_pair(
            logged_in.id,
            logged_in.active_organization_id,
            logged_in.active_workspace_id,
        )
        response = RedirectResponse(
            f"{self.config.app_url}{self.config.sso_success_path}",
            status_code=302,
        )
        self._set_cookies(response, session_id, tokens)

        await self._record(
            logged_in.email,
            LoginActivityCode.LOGIN_SUCCESS,
            LOGIN_SUCCESS_MESSAGE,
            logged_in.sso_provider,
        )
        logger.info(
            "sso_session_established",
            provider=logged_in.sso_provider,
            user_id=str(logged_in.id),
        )
        return response

    async def reject(
        self,
        provider_name: str,
        code: LoginActivityCode,
        message: str,
        email: str | None = None,
    ) -> Response:
        """Audit a login rejected before reconciliation and redirect to sign-in."""
        logger.warning("sso_login_rejected", provider=provider_name, code=code.value)
        await self._record(email, code, message, provider_name)
        return RedirectResponse(
            signin_error_url(message, self.config.signin_path),
            status_code=302,
        )

    async def logout(self, request: Request, provider: SSOProvider) -> Response:
        """Tear down the session and redirect to the provider's logout.

        Cookies are only cleared once the session is gone; a failing
        session store answers 500 without redirecting.
        A provider deactivated mid-request ends at the sign-in page.
        """
        session_id = request.cookies.get(self.config.session_cookie_name)
        user: dict[str, Any] | None = None

        if session_id:
            try:
                user = await self.store.load(session_id)
                await self.store.logout(session_id)
            except Exception:
                logger.exception("sso_logout_failed", provider=provider.get_provider_name())
                return JSONResponse(status_code=500, content={"message": "Logout failed"})

            try:
                await self.store.destroy(session_id)
            except Exception:
                logger.exception(
                    "session_destroy_failed", provider=provider.get_provider_name()
                )
                return JSONResponse(
                    status_code=500, content={"message": "Failed to destroy session"}
                )

        return_to = f"{self.config.app_url}{self.config.signin_path}"
        try:
            logout_url = provider.build_logout_url(return_to) or return_to
        except ProviderNotConfiguredError:
            logout_url = return_to
        response = RedirectResponse(logout_url, status_code=302)
        for name in self.cookie_names:
            response.delete_cookie(name)

        await self._record(
            (user or {}).get("email"),
            LoginActivityCode.LOGOUT_SUCCESS,
            LOGOUT_SUCCESS_MESSAGE,
            provider.get_provider_name(),
        )
        return response

    async def current_session(self, request: Request) -> LoggedInSession:
        """Load the logged-in session for the request.

        Raises:
            UnauthorizedError: If no session is bound
        """
        session_id = request.cookies.get(self.config.session_cookie_name)
        user = await self.store.load(session_id) if session_id else None
        if not user:
            raise UnauthorizedError("No active session")
        return LoggedInSession.model_validate(user)

    async def public_session(self, request: Request) -> PublicSession:
        logged_in = await self.current_session(request)
        return PublicSession.model_validate(logged_in.model_dump())

    async def refresh_provider_tokens(
        self, request: Request, registry: ProviderRegistry
    ) -> dict[str, Any]:
        """Refresh the provider tokens held in the current session.

        Raises:
            UnauthorizedError: If no session is bound
            BadRequestError: If the provider is inactive, no refresh token is
                held, or the provider rejects the refresh
        """
        logged_in = await self.current_session(request)
        provider = registry.find_by_name(logged_in.sso_provider)
        if provider is None:
            raise BadRequestError(
                f"{logged_in.sso_provider} is not configured.",
                error_code=SSOErrorKind.CONFIG_MISSING.value,
            )
        if not logged_in.sso_refresh_token:
            raise BadRequestError(
                "Session holds no provider refresh token",
                error_code=SSOErrorKind.PROVIDER_EXCHANGE_FAILED.value,
            )

        result = await provider.refresh_token(logged_in.sso_refresh_token)
        if "error" in result:
            raise BadRequestError(
                str(result["error"]),
                error_code=SSOErrorKind.PROVIDER_EXCHANGE_FAILED.value,
            )

        refreshed = logged_in.model_copy(
            update={
                "sso_token": result.get("access_token", logged_in.sso_token),
                "sso_refresh_token": result.get("refresh_token", logged_in.sso_refresh_token),
            }
        )
        session_id = request.cookies[self.config.session_cookie_name]
        try:
            await self.store.bind(session_id, refreshed.model_dump(mode="json"))
        except Exception as exc:
            logger.exception("session_bind_failed", provider=logged_in.sso_provider)
            raise SessionBindError() from exc

        logger.info("sso_tokens_refreshed", provider=logged_in.sso_provider)
        return {"message": "Token refreshed", "expires_in": result.get("expires_in")}

    def _set_cookies(self, response: Response, session_id: str, tokens: TokenPair) -> None:
        secure = not self.config.is_development
        response.set_cookie(
            self.config.session_cookie_name,
            session_id,
            max_age=self.config.session_ttl_seconds,
            httponly=True,
            secure=secure,
            samesite="lax",
        )
        response.set_cookie(
            self.config.access_token_cookie_name,
            tokens.access_token,
            max_age=tokens.expires_in,
            httponly=True,
            secure=secure,
            samesite="lax",
        )
        response.set_cookie(
            self.config.refresh_token_cookie_name,
            tokens.refresh_token,
            max_age=self.config.refresh_token_expire_days * 24 * 60 * 60,
            httponly=True,
            secure=secure,
            samesite="lax",
        )

    async def _record(
        self,
        email: str | None,
        code: LoginActivityCode,
        message: str,
        provider_name: str,
    ) -> None:
        try:
            await self.audit.record_login_activity(email, code, message, provider_name)
        except Exception:
            logger.exception("login_activity_write_failed", provider=provider_name)

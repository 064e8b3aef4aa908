"""SSO provider contract and the shared login/callback/logout routes.

A provider instance is inert until ``configure`` activates it in the
provider registry. ``initialize`` mounts the provider's routes once per
app; every handler looks the provider up in the registry on each request,
so reconfiguring or deactivating a provider never needs re-registration.
"""

import secrets
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx
import structlog
from fastapi import APIRouter, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from ssogate.config import settings
from ssogate.core.audit import LoginActivityCode
from ssogate.core.cache import OAuthStateData, store_oauth_state, verify_oauth_state
from ssogate.core.errors import BadRequestError
from ssogate.sso.dependencies import Establisher, Reconciler
from ssogate.sso.errors import ProviderNotConfiguredError
from ssogate.sso.registry import ProviderRegistry, provider_registry
from ssogate.sso.schemas import ExternalIdentity


logger = structlog.get_logger()

UNKNOWN_USER_MESSAGE = "Unknown user: the identity provider returned no email address."


def generate_state() -> str:
    """Generate a secure random state for CSRF protection."""
    return secrets.token_urlsafe(32)


def provider_error_message(response: httpx.Response) -> str:
    """Extract a readable error from a provider's error response."""
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        return str(
            payload.get("error_description")
            or payload.get("error")
            or f"HTTP {response.status_code}"
        )
    return f"HTTP {response.status_code}"


class SSOProvider(ABC):
    """Base class for external identity providers.

    Subclasses set ``key`` (route segment), ``display_name`` (audit and
    session tag) and ``config_model``, and implement the OAuth hooks.
    """

    key: ClassVar[str]
    display_name: ClassVar[str]
    config_model: ClassVar[type[BaseModel]]

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.registry = registry or provider_registry
        self.timeout_seconds = timeout_seconds or settings.sso_http_timeout_seconds
        self.config: Any = None
        self._transport = transport

    def get_provider_name(self) -> str:
        return self.display_name

    @property
    def is_configured(self) -> bool:
        return self.config is not None

    @property
    def callback_url(self) -> str:
        return f"{settings.backend_url}/api/v1/{self.key}/callback"

    @property
    def not_configured_message(self) -> str:
        return f"{self.get_provider_name()} is not configured."

    def require_config(self) -> Any:
        """Return the current config, raising if the provider was deactivated."""
        config = self.config
        if config is None:
            raise ProviderNotConfiguredError(self.not_configured_message)
        return config

    def configure(self, config: BaseModel | dict[str, Any] | None) -> None:
        """Activate the provider with config, or deactivate it with None."""
        if config is None:
            self.config = None
            if self.registry.get(self.key) is self:
                self.registry.unregister(self.key)
            return

        self.config = self.config_model.model_validate(config)
        self.registry.register(self.key, self)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)

    async def post_token_request(
        self,
        url: str,
        data: dict[str, Any],
        failure_message: str,
    ) -> dict[str, Any]:
        """POST to a token endpoint, returning the payload or {"error": ...}."""
        try:
            async with self.http_client() as client:
                response = await client.post(
                    url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "sso_token_request_rejected",
                provider=self.get_provider_name(),
                status_code=exc.response.status_code,
                reason=provider_error_message(exc.response),
            )
            return {"error": failure_message}
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "sso_token_request_failed",
                provider=self.get_provider_name(),
                error_type=type(exc).__name__,
            )
            return {"error": failure_message}

    @abstractmethod
    def build_authorize_url(self, redirect_uri: str, state: str) -> str:
        """Return the provider consent URL."""

    @abstractmethod
    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """Exchange an authorization code for tokens.

        Returns:
            The token payload, or {"error": message}
        """

    @abstractmethod
    async def fetch_identity(self, tokens: dict[str, Any]) -> ExternalIdentity:
        """Load the identity behind an access token.

        Raises:
            httpx.HTTPError: If the provider cannot be reached or refuses
        """

    @abstractmethod
    def build_logout_url(self, return_to: str) -> str | None:
        """Return the federated logout URL, or None without federated logout."""

    @abstractmethod
    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        """Exchange a refresh token; never raises.

        Returns:
            The token payload, or {"error": message}
        """

    @abstractmethod
    async def test_setup(self, config: BaseModel | dict[str, Any]) -> dict[str, Any]:
        """Check credentials out of band without activating them.

        Returns:
            {"message": status} or {"error": message}
        """

    def initialize(self, app: FastAPI) -> None:
        """Mount login, callback and logout routes; repeated calls are no-ops."""
        mounted: set[str] = getattr(app.state, "sso_routes", set())
        if self.key in mounted:
            return

        app.include_router(self._build_router())
        app.state.sso_routes = mounted | {self.key}
        logger.debug("sso_routes_mounted", provider=self.get_provider_name())

    def _not_configured(self) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": self.not_configured_message},
        )

    def _build_router(self) -> APIRouter:
        router = APIRouter(prefix=f"/api/v1/{self.key}", tags=["sso"])
        key = self.key

        @router.get("/login", name=f"{key}_login", response_model=None)
        async def login() -> Response:
            provider = self.registry.get(key)
            if provider is None:
                return self._not_configured()

            state = generate_state()
            redirect_uri = provider.callback_url
            await store_oauth_state(
                state, OAuthStateData(provider=key, redirect_uri=redirect_uri)
            )
            logger.info(
                "sso_login_initiated",
                provider=provider.get_provider_name(),
                state=state[:8] + "...",
            )
            try:
                authorize_url = provider.build_authorize_url(redirect_uri, state)
            except ProviderNotConfiguredError:
                return self._not_configured()
            return RedirectResponse(authorize_url, status_code=302)

        @router.get("/callback", name=f"{key}_callback", response_model=None)
        async def callback(
            request: Request,
            reconciler: Reconciler,
            establisher: Establisher,
            code: str | None = Query(None, description="Authorization code from provider"),
            state: str | None = Query(None, description="State for CSRF verification"),
            error: str | None = Query(None, description="Error from provider"),
            error_description: str | None = Query(None, description="Error description"),
        ) -> Response:
            provider = self.registry.get(key)
            if provider is None:
                return self._not_configured()
            provider_name = provider.get_provider_name()

            if error:
                return await establisher.reject(
                    provider_name,
                    LoginActivityCode.PROVIDER_EXCHANGE_FAILED,
                    error_description or f"{provider_name} error: {error}",
                )

            if not code or not state:
                raise BadRequestError(
                    "Missing authorization code or state",
                    error_code="invalid_state",
                )

            state_data = await verify_oauth_state(state, key)
            if state_data is None:
                raise BadRequestError(
                    "Invalid or expired OAuth state",
                    error_code="invalid_state",
                )

            tokens = await provider.exchange_code(code, state_data["redirect_uri"])
            if "error" in tokens:
                return await establisher.reject(
                    provider_name,
                    LoginActivityCode.PROVIDER_EXCHANGE_FAILED,
                    str(tokens["error"]),
                )

            try:
                identity = await provider.fetch_identity(tokens)
            except ProviderNotConfiguredError:
                return self._not_configured()
            except (httpx.HTTPError, ValueError, KeyError):
                logger.warning("sso_identity_fetch_failed", provider=provider_name)
                return await establisher.reject(
                    provider_name,
                    LoginActivityCode.PROVIDER_EXCHANGE_FAILED,
                    f"Could not load the {provider_name} profile.",
                )

            if not identity.email:
                return await establisher.reject(
                    provider_name,
                    LoginActivityCode.UNKNOWN_IDENTITY,
                    UNKNOWN_USER_MESSAGE,
                )

            result = await reconciler.reconcile(identity)
            return await establisher.handle_result(request, result)

        @router.get("/logout", name=f"{key}_logout", response_model=None)
        async def logout(request: Request, establisher: Establisher) -> Response:
            provider = self.registry.get(key)
            if provider is None:
                return self._not_configured()
            return await establisher.logout(request, provider)

        return router

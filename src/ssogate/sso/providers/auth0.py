"""Auth0 identity provider."""

from typing import Any, ClassVar
from urllib.parse import urlencode

import httpx
import structlog
from pydantic import BaseModel, SecretStr, field_validator

from ssogate.config import settings
from ssogate.sso.base import SSOProvider, provider_error_message
from ssogate.sso.schemas import ExternalIdentity


logger = structlog.get_logger()

TEST_SETUP_FAILED_MESSAGE = (
    "Auth0 Configuration test failed. Please check your credentials and domain."
)
REFRESH_FAILED_MESSAGE = "Failed to get refreshToken from Auth0."
EXCHANGE_FAILED_MESSAGE = "Failed to exchange the authorization code with Auth0."


class Auth0Config(BaseModel):
    """Auth0 tenant credentials."""

    domain: str
    client_id: str
    client_secret: SecretStr

    @field_validator("domain")
    @classmethod
    def normalize_domain(cls, v: str) -> str:
        """Accept "tenant.auth0.com" with or without scheme and trailing slash."""
        v = v.strip().removeprefix("https://").removeprefix("http://").rstrip("/")
        if not v:
            raise ValueError("Auth0 domain must not be empty")
        return v


class Auth0SSO(SSOProvider):
    """Auth0 provider with federated logout."""

    key = "auth0"
    display_name = "Auth0 SSO"
    config_model: ClassVar[type[BaseModel]] = Auth0Config

    config: Auth0Config | None

    @staticmethod
    def _base_url(config: Auth0Config) -> str:
        return f"https://{config.domain}"

    def build_authorize_url(self, redirect_uri: str, state: str) -> str:
        config = self.require_config()
        params = {
            "response_type": "code",
            "client_id": config.client_id,
            "redirect_uri": redirect_uri,
            "scope": settings.sso_scope,
            "state": state,
        }
        return f"{self._base_url(config)}/authorize?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        config = self.config
        if config is None:
            return {"error": self.not_configured_message}
        return await self.post_token_request(
            f"{self._base_url(config)}/oauth/token",
            {
                "grant_type": "authorization_code",
                "client_id": config.client_id,
                "client_secret": config.client_secret.get_secret_value(),
                "code": code,
                "redirect_uri": redirect_uri,
            },
            EXCHANGE_FAILED_MESSAGE,
        )

    async def fetch_identity(self, tokens: dict[str, Any]) -> ExternalIdentity:
        config = self.require_config()
        access_token = tokens["access_token"]
        async with self.http_client() as client:
            response = await client.get(
                f"{self._base_url(config)}/userinfo",
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            data = response.json()

        email = data.get("email")
        return ExternalIdentity(
            email=email,
            name=data.get("name") or email,
            provider_name=self.get_provider_name(),
            access_token=access_token,
            refresh_token=tokens.get("refresh_token"),
        )

    def build_logout_url(self, return_to: str) -> str | None:
        config = self.require_config()
        params = {"returnTo": return_to, "client_id": config.client_id}
        return f"{self._base_url(config)}/v2/logout?{urlencode(params)}"

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        config = self.config
        if config is None:
            return {"error": self.not_configured_message}
        return await self.post_token_request(
            f"{self._base_url(config)}/oauth/token",
            {
                "grant_type": "refresh_token",
                "client_id": config.client_id,
                "client_secret": config.client_secret.get_secret_value(),
                "refresh_token": refresh_token,
            },
            REFRESH_FAILED_MESSAGE,
        )

    async def test_setup(self, config: BaseModel | dict[str, Any]) -> dict[str, Any]:
        """Request a management API token with the given credentials."""
        candidate = Auth0Config.model_validate(config)
        base_url = self._base_url(candidate)
        try:
            async with self.http_client() as client:
                response = await client.post(
                    f"{base_url}/oauth/token",
                    json={
                        "client_id": candidate.client_id,
                        "client_secret": candidate.client_secret.get_secret_value(),
                        "audience": f"{base_url}/api/v2/",
                        "grant_type": "client_credentials",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "sso_test_setup_failed",
                provider=self.get_provider_name(),
                status_code=exc.response.status_code,
                reason=provider_error_message(exc.response),
            )
            return {"error": TEST_SETUP_FAILED_MESSAGE}
        except httpx.HTTPError as exc:
            logger.warning(
                "sso_test_setup_failed",
                provider=self.get_provider_name(),
                error_type=type(exc).__name__,
            )
            return {"error": TEST_SETUP_FAILED_MESSAGE}

        return {"message": response.status_code}


def auth0_config_from_settings() -> Auth0Config | None:
    """Build the Auth0 configuration from settings, if fully present."""
    if not (settings.auth0_domain and settings.auth0_client_id and settings.auth0_client_secret):
        return None
    return Auth0Config(
        domain=settings.auth0_domain,
        client_id=settings.auth0_client_id,
        client_secret=SecretStr(settings.auth0_client_secret),
    )

"""Google identity provider.

Google offers no federated logout endpoint, so logout ends at the
sign-in page.
"""

from typing import Any, ClassVar
from urllib.parse import urlencode

import httpx
import structlog
from pydantic import BaseModel, SecretStr

from ssogate.config import settings
from ssogate.sso.base import SSOProvider, provider_error_message
from ssogate.sso.schemas import ExternalIdentity


logger = structlog.get_logger()

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

TEST_SETUP_FAILED_MESSAGE = (
    "Google Configuration test failed. Please check your client id and secret."
)
REFRESH_FAILED_MESSAGE = "Failed to get refreshToken from Google."
EXCHANGE_FAILED_MESSAGE = "Failed to exchange the authorization code with Google."


class GoogleConfig(BaseModel):
    """Google OAuth client credentials."""

    client_id: str
    client_secret: SecretStr


class GoogleSSO(SSOProvider):
    """Google provider."""

    key = "google"
    display_name = "Google SSO"
    config_model: ClassVar[type[BaseModel]] = GoogleConfig

    config: GoogleConfig | None

    def build_authorize_url(self, redirect_uri: str, state: str) -> str:
        config = self.require_config()
        params = {
            "client_id": config.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": settings.sso_scope,
            "state": state,
            "access_type": "offline",  # Get refresh token
            "prompt": "select_account",  # Always show account picker
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        config = self.config
        if config is None:
            return {"error": self.not_configured_message}
        return await self.post_token_request(
            TOKEN_URL,
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
        access_token = tokens["access_token"]
        async with self.http_client() as client:
            response = await client.get(
                USERINFO_URL,
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
        return None

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        config = self.config
        if config is None:
            return {"error": self.not_configured_message}
        return await self.post_token_request(
            TOKEN_URL,
            {
                "grant_type": "refresh_token",
                "client_id": config.client_id,
                "client_secret": config.client_secret.get_secret_value(),
                "refresh_token": refresh_token,
            },
            REFRESH_FAILED_MESSAGE,
        )

    async def test_setup(self, config: BaseModel | dict[str, Any]) -> dict[str, Any]:
        """Check the token endpoint with the client credentials.

        Google has no client-credentials grant, so the check sends an
        unusable refresh token: "invalid_grant" proves the client is
        known, "invalid_client" or "unauthorized_client" proves it is not.
        """
        candidate = GoogleConfig.model_validate(config)
        try:
            async with self.http_client() as client:
                response = await client.post(
                    TOKEN_URL,
                    data={
                        "grant_type": "refresh_token",
                        "client_id": candidate.client_id,
                        "client_secret": candidate.client_secret.get_secret_value(),
                        "refresh_token": "ssogate-setup-check",
                    },
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning(
                "sso_test_setup_failed",
                provider=self.get_provider_name(),
                error_type=type(exc).__name__,
            )
            return {"error": TEST_SETUP_FAILED_MESSAGE}

        if response.is_success or _error_code(response) == "invalid_grant":
            return {"message": response.status_code}

        logger.warning(
            "sso_test_setup_failed",
            provider=self.get_provider_name(),
            status_code=response.status_code,
            reason=provider_error_message(response),
        )
        return {"error": TEST_SETUP_FAILED_MESSAGE}


def _error_code(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload.get("error") if isinstance(payload, dict) else None


def google_config_from_settings() -> GoogleConfig | None:
    """Build the Google configuration from settings, if fully present."""
    if not (settings.google_client_id and settings.google_client_secret):
        return None
    return GoogleConfig(
        client_id=settings.google_client_id,
        client_secret=SecretStr(settings.google_client_secret),
    )

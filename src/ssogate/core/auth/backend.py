"""Platform token issuance.

After a successful SSO login the client receives two signed JWTs as
cookies: a short-lived access token and a longer-lived refresh token.
Both carry the active organization and workspace.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from ssogate.config import settings
from ssogate.core.auth.schemas import TokenData, TokenPair
from ssogate.core.constants import ACCESS_TOKEN_JTI_LENGTH


def _encode(
    user_id: UUID,
    organization_id: UUID,
    workspace_id: UUID,
    token_type: str,
    expires_delta: timedelta,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    now = datetime.now(UTC)
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "org_id": str(organization_id),
        "workspace_id": str(workspace_id),
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),
    }
    if additional_claims:
        to_encode.update(additional_claims)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: UUID,
    organization_id: UUID,
    workspace_id: UUID,
    expires_delta: timedelta | None = None,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    """Create a short-lived access token."""
    return _encode(
        user_id,
        organization_id,
        workspace_id,
        "access",
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
        additional_claims,
    )


def create_refresh_token(
    user_id: UUID,
    organization_id: UUID,
    workspace_id: UUID,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a long-lived refresh token."""
    return _encode(
        user_id,
        organization_id,
        workspace_id,
        "refresh",
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def issue_token_pair(
    user_id: UUID,
    organization_id: UUID,
    workspace_id: UUID,
) -> TokenPair:
    """Issue the access/refresh pair for a freshly established session."""
    return TokenPair(
        access_token=create_access_token(user_id, organization_id, workspace_id),
        refresh_token=create_refresh_token(user_id, organization_id, workspace_id),
        expires_in=settings.access_token_expire_minutes * 60,
    )


def decode_token(token: str) -> TokenData | None:
    """Decode and validate a platform JWT.

    Returns:
        TokenData if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return TokenData(
            user_id=UUID(payload["sub"]),
            organization_id=UUID(payload["org_id"]),
            workspace_id=UUID(payload["workspace_id"]),
            exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
            type=payload.get("type", "access"),
        )
    except (JWTError, KeyError, ValueError):
        return None

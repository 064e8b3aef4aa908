"""OAuth state storage with Redis backend.

The login route stores a random state before redirecting to the identity
provider; the callback route consumes it exactly once.
"""

from typing import TypedDict

import structlog

from ssogate.core.cache.redis import RedisCache
from ssogate.core.constants import OAUTH_STATE_TTL_SECONDS


logger = structlog.get_logger()


class OAuthStateData(TypedDict):
    """OAuth state data structure."""

    provider: str
    redirect_uri: str


_oauth_cache = RedisCache(prefix="oauth:state:")


async def store_oauth_state(state: str, data: OAuthStateData) -> None:
    """Store OAuth state with a TTL of OAUTH_STATE_TTL_SECONDS."""
    await _oauth_cache.set_json(state, dict(data), OAUTH_STATE_TTL_SECONDS)

    logger.debug(
        "oauth_state_stored",
        state=state[:8] + "...",
        provider=data["provider"],
    )


async def verify_oauth_state(state: str, expected_provider: str) -> OAuthStateData | None:
    """Consume a stored state and check it was issued for expected_provider.

    Returns:
        The state data, or None if unknown, expired, malformed or issued
        for another provider
    """
    data = await _oauth_cache.get_json_and_delete(state)

    if data is None or "provider" not in data or "redirect_uri" not in data:
        logger.warning("oauth_state_invalid", state=state[:8] + "...")
        return None

    if data["provider"] != expected_provider:
        logger.warning(
            "oauth_state_provider_mismatch",
            state=state[:8] + "...",
            expected=expected_provider,
            actual=data["provider"],
        )
        return None

    return OAuthStateData(
        provider=data["provider"],
        redirect_uri=data["redirect_uri"],
    )

"""Redis-backed caching: OAuth state and the shared client pool."""

from ssogate.core.cache.oauth_state import (
    OAuthStateData,
    store_oauth_state,
    verify_oauth_state,
)
from ssogate.core.cache.redis import RedisCache, close_redis_pool, redis_client


__all__ = [
    "OAuthStateData",
    "RedisCache",
    "close_redis_pool",
    "redis_client",
    "store_oauth_state",
    "verify_oauth_state",
]

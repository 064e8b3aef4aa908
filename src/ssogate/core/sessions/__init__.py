"""Server-side HTTP sessions."""

from ssogate.core.sessions.store import (
    RedisSessionStore,
    SessionStore,
    generate_session_id,
)


__all__ = [
    "RedisSessionStore",
    "SessionStore",
    "generate_session_id",
]

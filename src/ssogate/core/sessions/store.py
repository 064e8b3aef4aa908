"""Server-side HTTP session store.

The browser only ever holds an opaque session id; the session record
(including the logged-in user) lives in Redis under that id.
"""

import secrets
from abc import ABC, abstractmethod
from typing import Any

import structlog

from ssogate.config import settings
from ssogate.core.cache.redis import RedisCache
from ssogate.core.constants import SESSION_ID_BYTES


logger = structlog.get_logger()


def generate_session_id() -> str:
    """Generate an unguessable session id."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


class SessionStore(ABC):
    """Storage contract for server-side sessions."""

    @abstractmethod
    async def regenerate(self, session_id: str | None) -> str:
        """Destroy the record under session_id (if any) and open a fresh one.

        Returns:
            The new session id
        """

    @abstractmethod
    async def bind(self, session_id: str, user: dict[str, Any]) -> None:
        """Attach the logged-in user to an open session."""

    @abstractmethod
    async def load(self, session_id: str) -> dict[str, Any] | None:
        """Return the logged-in user bound to session_id, if any."""

    @abstractmethod
    async def logout(self, session_id: str) -> None:
        """Detach the logged-in user while keeping the session record."""

    @abstractmethod
    async def destroy(self, session_id: str) -> None:
        """Delete the session record."""


class RedisSessionStore(SessionStore):
    """SessionStore backed by Redis with a sliding TTL per write."""

    def __init__(self, ttl_seconds: int | None = None) -> None:
        self.ttl_seconds = ttl_seconds or settings.session_ttl_seconds
        self._cache = RedisCache(prefix="session:")

    async def regenerate(self, session_id: str | None) -> str:
        if session_id:
            await self._cache.delete(session_id)
        new_id = generate_session_id()
        await self._cache.set_json(new_id, {"user": None}, self.ttl_seconds)
        logger.debug("session_regenerated", had_previous=session_id is not None)
        return new_id

    async def bind(self, session_id: str, user: dict[str, Any]) -> None:
        await self._cache.set_json(session_id, {"user": user}, self.ttl_seconds)

    async def load(self, session_id: str) -> dict[str, Any] | None:
        record = await self._cache.get_json(session_id)
        if record is None:
            return None
        return record.get("user")

    async def logout(self, session_id: str) -> None:
        await self._cache.set_json(session_id, {"user": None}, self.ttl_seconds)

    async def destroy(self, session_id: str) -> None:
        await self._cache.delete(session_id)

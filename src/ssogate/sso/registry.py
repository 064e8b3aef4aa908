"""Process-wide registry of active SSO providers.

Writers (provider configuration) serialize on a lock and publish a new
read-only snapshot; request handlers read the current snapshot without
locking, so a request sees either the old or the new set of providers,
never a partial one.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

import structlog


if TYPE_CHECKING:
    from ssogate.sso.base import SSOProvider


logger = structlog.get_logger()


class ProviderRegistry:
    """Copy-on-write mapping of route key to active provider."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._providers: Mapping[str, SSOProvider] = MappingProxyType({})

    def register(self, key: str, provider: SSOProvider) -> None:
        with self._lock:
            updated = dict(self._providers)
            updated[key] = provider
            self._providers = MappingProxyType(updated)
        logger.info("sso_provider_activated", provider=provider.get_provider_name())

    def unregister(self, key: str) -> None:
        with self._lock:
            if key not in self._providers:
                return
            updated = dict(self._providers)
            removed = updated.pop(key)
            self._providers = MappingProxyType(updated)
        logger.info("sso_provider_deactivated", provider=removed.get_provider_name())

    def get(self, key: str) -> SSOProvider | None:
        return self._providers.get(key)

    def find_by_name(self, name: str) -> SSOProvider | None:
        """Find an active provider by its display name."""
        for provider in self._providers.values():
            if provider.get_provider_name() == name:
                return provider
        return None

    def active(self) -> Mapping[str, SSOProvider]:
        """Return the current snapshot."""
        return self._providers

    def clear(self) -> None:
        with self._lock:
            self._providers = MappingProxyType({})


# Global registry
provider_registry = ProviderRegistry()

"""Database layer - session management, base models, and mixins."""

from ssogate.core.database.base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    insertion_timestamp,
)
from ssogate.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
    unit_of_work,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "insertion_timestamp",
    "async_engine",
    "async_session_factory",
    "get_db",
    "unit_of_work",
]

"""Test helpers shared across test modules."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ssogate.core.audit import LoginActivity
from ssogate.core.database import Base
from ssogate.core.sessions import SessionStore, generate_session_id
from ssogate.modules.organizations.models import Organization
from ssogate.modules.roles.models import Role
from ssogate.modules.workspaces.models import Workspace


async def count_rows(
    session_factory: async_sessionmaker[AsyncSession], model: type[Base]
) -> int:
    """Count committed rows of a model."""
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


async def login_activity(
    session_factory: async_sessionmaker[AsyncSession],
) -> list[LoginActivity]:
    """Return every committed login activity entry."""
    async with session_factory() as session:
        result = await session.execute(select(LoginActivity))
        return list(result.scalars().all())


@dataclass
class SeededTenant:
    """The open source tenant plus the reserved roles."""

    organization: Organization
    workspace: Workspace
    owner_role: Role
    member_role: Role


class InMemorySessionStore(SessionStore):
    """SessionStore double with switchable failures."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.fail_on: set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise ConnectionError(f"session store unavailable during {operation}")

    async def regenerate(self, session_id: str | None) -> str:
        self._check("regenerate")
        if session_id:
            self.records.pop(session_id, None)
        new_id = generate_session_id()
        self.records[new_id] = {"user": None}
        return new_id

    async def bind(self, session_id: str, user: dict[str, Any]) -> None:
        self._check("bind")
        self.records[session_id] = {"user": user}

    async def load(self, session_id: str) -> dict[str, Any] | None:
        self._check("load")
        record = self.records.get(session_id)
        return record["user"] if record else None

    async def logout(self, session_id: str) -> None:
        self._check("logout")
        if session_id in self.records:
            self.records[session_id] = {"user": None}

    async def destroy(self, session_id: str) -> None:
        self._check("destroy")
        self.records.pop(session_id, None)

"""Role repository for database operations."""

from uuid import UUID

from sqlalchemy import select

from ssogate.api.dependencies import DBSession
from ssogate.modules.roles.models import Role


class RoleRepository:
    """Repository for Role database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, role: Role) -> Role:
        """Persist a new role."""
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def get_by_id(self, role_id: UUID) -> Role | None:
        """Get a role by ID."""
        return await self.session.get(Role, role_id)

    async def get_by_name(self, name: str) -> Role | None:
        """Get a role by its unique name."""
        result = await self.session.execute(select(Role).where(Role.name == str(name)))
        return result.scalar_one_or_none()

"""Organization repository for database operations."""

from uuid import UUID

from sqlalchemy import func, select

from ssogate.api.dependencies import DBSession
from ssogate.modules.organizations.models import Organization


class OrganizationRepository:
    """Repository for Organization database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, organization: Organization) -> Organization:
        """Persist a new organization and return it with defaults loaded."""
        self.session.add(organization)
        await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def list_all(self) -> list[Organization]:
        """List all organizations, oldest first."""
        stmt = select(Organization).order_by(Organization.created_at, Organization.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count all organizations."""
        result = await self.session.execute(
            select(func.count()).select_from(Organization)
        )
        return result.scalar_one()

    async def get_by_id(self, organization_id: UUID) -> Organization | None:
        """Get an organization by ID."""
        return await self.session.get(Organization, organization_id)

"""Seed data the SSO login path depends on."""

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from ssogate.core.audit.models import LoginActivity  # noqa: F401
from ssogate.core.database import Base, async_engine
from ssogate.modules.organizations.models import Organization
from ssogate.modules.organizations.repos import OrganizationRepository
from ssogate.modules.roles.constants import DEFAULT_ROLES
from ssogate.modules.roles.models import Role
from ssogate.modules.roles.repos import RoleRepository
from ssogate.modules.users.models import User  # noqa: F401
from ssogate.modules.workspaces.models import Workspace, WorkspaceMembership  # noqa: F401
from ssogate.modules.workspaces.repos import WorkspaceRepository


logger = structlog.get_logger()


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create any missing tables for every model."""
    async with (engine or async_engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_roles(session: AsyncSession) -> list[str]:
    """Create the reserved roles that do not exist yet.

    Returns:
        Names of the roles created
    """
    repo = RoleRepository(session)
    created: list[str] = []
    for name, (description, permissions) in DEFAULT_ROLES.items():
        if await repo.get_by_name(name) is not None:
            continue
        await repo.create(
            Role(name=name.value, description=description, permissions=list(permissions))
        )
        created.append(name.value)

    if created:
        logger.info("roles_seeded", roles=created)
    return created


async def seed_tenant(
    session: AsyncSession,
    organization_name: str,
    workspace_name: str,
) -> Organization | None:
    """Create the single organization and its workspace.

    Returns:
        The new organization, or None when an organization already exists
    """
    organizations = OrganizationRepository(session)
    if await organizations.count() > 0:
        return None

    organization = await organizations.create(Organization(name=organization_name))
    await WorkspaceRepository(session).create(
        Workspace(organization_id=organization.id, name=workspace_name)
    )
    logger.info(
        "tenant_seeded",
        organization_id=str(organization.id),
        workspace=workspace_name,
    )
    return organization

"""Start-up checks for platform-mode invariants."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ssogate.core.constants import PlatformMode
from ssogate.core.errors import PlatformMisconfiguredError
from ssogate.modules.organizations.repos import OrganizationRepository
from ssogate.modules.roles.models import GeneralRole
from ssogate.modules.roles.repos import RoleRepository
from ssogate.modules.workspaces.repos import WorkspaceRepository


logger = structlog.get_logger()


async def verify_platform_invariants(session: AsyncSession, mode: PlatformMode) -> list[str]:
    """Check the data the SSO login path relies on.

    Returns:
        Warnings about conditions that only fail at login time

    Raises:
        PlatformMisconfiguredError: If OPEN_SOURCE mode finds more than
            one organization, or its organization owns no workspace
    """
    warnings: list[str] = []

    if await RoleRepository(session).get_by_name(GeneralRole.OWNER) is None:
        warnings.append("Owner role is not seeded; SSO logins will fail")

    if mode == PlatformMode.OPEN_SOURCE:
        warnings.extend(await _verify_single_tenant(session))

    for warning in warnings:
        logger.warning("platform_invariant_warning", warning=warning, mode=mode.value)
    return warnings


async def _verify_single_tenant(session: AsyncSession) -> list[str]:
    organizations = await OrganizationRepository(session).list_all()
    if len(organizations) > 1:
        raise PlatformMisconfiguredError(
            "Open source mode requires exactly one organization",
            details={"organization_count": len(organizations)},
        )
    if not organizations:
        return ["No organization exists yet; SSO logins will fail until one is seeded"]

    workspaces = await WorkspaceRepository(session).list_by_organization(organizations[0].id)
    if not workspaces:
        raise PlatformMisconfiguredError(
            "The organization owns no workspace",
            details={"organization_id": str(organizations[0].id)},
        )

    return []

"""Account registration service.

Bootstraps brand-new tenants (organization, workspace, user and owner
membership) and finalizes invited accounts on their first login.
"""

import structlog

from ssogate.api.dependencies import DBSession
from ssogate.core.errors import NotFoundError
from ssogate.modules.accounts.schemas import RegisteredAccount, UserDraft
from ssogate.modules.organizations.models import Organization
from ssogate.modules.organizations.repos import OrganizationRepository
from ssogate.modules.roles.models import GeneralRole
from ssogate.modules.roles.repos import RoleRepository
from ssogate.modules.users.models import User, UserStatus
from ssogate.modules.users.repos import UserRepository
from ssogate.modules.workspaces.models import Workspace, WorkspaceMembership
from ssogate.modules.workspaces.repos import (
    WorkspaceMembershipRepository,
    WorkspaceRepository,
)


logger = structlog.get_logger()

DEFAULT_WORKSPACE_NAME = "Default Workspace"


class AccountRegistrar:
    """Service for creating and activating accounts.

    Works on the caller's session and never commits: the caller owns
    the transaction.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session
        self.user_repo = UserRepository(session)
        self.organization_repo = OrganizationRepository(session)
        self.workspace_repo = WorkspaceRepository(session)
        self.membership_repo = WorkspaceMembershipRepository(session)
        self.role_repo = RoleRepository(session)

    async def register(self, draft: UserDraft) -> RegisteredAccount:
        """Register an account.

        If draft.user_id names an invited account, that account is
        finalized. Otherwise a new tenant is bootstrapped around a new
        user who owns it.

        Raises:
            NotFoundError: If the OWNER role has not been seeded
        """
        if draft.user_id is not None:
            existing = await self.user_repo.get_by_id(draft.user_id)
            if existing is not None and existing.status == UserStatus.INVITED:
                return await self._finalize_invite(existing, draft)

        return await self._bootstrap_tenant(draft)

    async def _bootstrap_tenant(self, draft: UserDraft) -> RegisteredAccount:
        owner_role = await self.role_repo.get_by_name(GeneralRole.OWNER)
        if owner_role is None:
            raise NotFoundError("Owner role not found", resource="role")

        organization = await self.organization_repo.create(
            Organization(name=f"{draft.name}'s Organization")
        )
        workspace = await self.workspace_repo.create(
            Workspace(organization_id=organization.id, name=DEFAULT_WORKSPACE_NAME)
        )
        user = await self.user_repo.create(
            User(
                email=draft.email,
                name=draft.name,
                status=UserStatus.ACTIVE,
                organization_id=organization.id,
            )
        )
        membership = await self.membership_repo.create(
            WorkspaceMembership(
                user_id=user.id,
                workspace_id=workspace.id,
                role_id=owner_role.id,
                created_by=user.id,
            )
        )

        logger.info(
            "tenant_bootstrapped",
            user_id=str(user.id),
            organization_id=str(organization.id),
            workspace_id=str(workspace.id),
        )
        return RegisteredAccount(user=user, workspace=workspace, membership=membership)

    async def _finalize_invite(self, user: User, draft: UserDraft) -> RegisteredAccount:
        user.email = draft.email
        user.name = draft.name or user.name
        user.status = UserStatus.ACTIVE
        user = await self.user_repo.update(user)

        membership = await self.membership_repo.get_most_recent_by_user(user.id)
        workspace = (
            await self.workspace_repo.get_by_id(membership.workspace_id)
            if membership is not None
            else None
        )

        logger.info("invite_finalized", user_id=str(user.id))
        return RegisteredAccount(user=user, workspace=workspace, membership=membership)

"""Identity reconciliation.

Turns an identity verified by an external provider into a LoggedInSession:
finds or provisions the platform user, resolves the workspace, role and
organization to sign in to, and stamps the membership's last login. Every
step runs in one unit of work; any failure rolls it back and collapses to
a single SSO_LOGIN_FAILED result.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ssogate.core.audit import AuditService, LoginActivityCode
from ssogate.core.constants import PlatformMode
from ssogate.core.database.session import unit_of_work
from ssogate.core.errors import AppException
from ssogate.core.platform import PlatformModeResolver
from ssogate.modules.accounts.schemas import UserDraft
from ssogate.modules.accounts.services import AccountRegistrar
from ssogate.modules.entitlements.services import FeatureEntitlementResolver
from ssogate.modules.organizations.repos import OrganizationRepository
from ssogate.modules.roles.models import GeneralRole, Role
from ssogate.modules.roles.repos import RoleRepository
from ssogate.modules.users.models import User, UserStatus
from ssogate.modules.users.repos import UserRepository
from ssogate.modules.workspaces.models import WorkspaceMembership
from ssogate.modules.workspaces.repos import (
    WorkspaceMembershipRepository,
    WorkspaceRepository,
)
from ssogate.sso.errors import ReconciliationError
from ssogate.sso.schemas import (
    AssignedWorkspace,
    ExternalIdentity,
    LoggedInSession,
    LoginFailed,
    LoginResult,
    LoginSucceeded,
    SSOErrorKind,
)


logger = structlog.get_logger()

LOGIN_FAILED_MESSAGE = "{provider} Login failed! Please contact your administrator."

_AUDIT_CODES = {
    SSOErrorKind.UNKNOWN_IDENTITY: LoginActivityCode.UNKNOWN_IDENTITY,
    SSOErrorKind.USER_NOT_FOUND: LoginActivityCode.USER_NOT_FOUND,
}


def login_failed_message(provider_name: str) -> str:
    return LOGIN_FAILED_MESSAGE.format(provider=provider_name)


class IdentityReconciler:
    """Reconcile external identities with the platform's tenant graph."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        platform: PlatformModeResolver | None = None,
        entitlements: FeatureEntitlementResolver | None = None,
        audit: AuditService | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.platform = platform or PlatformModeResolver()
        self.entitlements = entitlements or FeatureEntitlementResolver()
        self.audit = audit or AuditService(session_factory)

    async def reconcile(
        self,
        identity: ExternalIdentity,
        mode: PlatformMode | None = None,
    ) -> LoginResult:
        """Reconcile an identity and build its session.

        Args:
            identity: Verified identity; must carry an email
            mode: Platform mode override, defaults to the process mode

        Returns:
            LoginSucceeded with the session, or LoginFailed(SSO_LOGIN_FAILED)
        """
        mode = mode or self.platform.current_mode()
        provider_name = identity.provider_name

        try:
            if not identity.email:
                raise ReconciliationError(
                    SSOErrorKind.UNKNOWN_IDENTITY, "Identity carries no email"
                )
            async with unit_of_work(self.session_factory) as session:
                logged_in = await self._reconcile(session, identity, mode)
        except Exception as exc:
            await self._record_failure(identity, exc, mode)
            return LoginFailed(
                kind=SSOErrorKind.SSO_LOGIN_FAILED,
                message=login_failed_message(provider_name),
            )

        logger.info(
            "sso_login_reconciled",
            provider=provider_name,
            user_id=str(logged_in.id),
            workspace_id=str(logged_in.active_workspace_id),
            mode=mode.value,
        )
        return LoginSucceeded(session=logged_in)

    async def _reconcile(
        self,
        session: AsyncSession,
        identity: ExternalIdentity,
        mode: PlatformMode,
    ) -> LoggedInSession:
        email = identity.email or ""
        users = UserRepository(session)
        memberships = WorkspaceMembershipRepository(session)
        roles = RoleRepository(session)

        await users.lock_email(email)
        user = await users.get_by_email(email)

        if user is None:
            user, membership = await self._provision(session, identity, mode)
        else:
            user, membership = await self._resume(session, user, identity, mode)

        role = await roles.get_by_id(membership.role_id)
        if role is None:
            raise ReconciliationError(
                SSOErrorKind.ROLE_NOT_FOUND,
                "Role not found",
                details={"role_id": str(membership.role_id)},
            )
        owner_role = await roles.get_by_name(GeneralRole.OWNER)

        workspace = await WorkspaceRepository(session).get_by_id(membership.workspace_id)
        if workspace is None:
            raise ReconciliationError(
                SSOErrorKind.WORKSPACE_NOT_FOUND,
                "Workspace not found",
                details={"workspace_id": str(membership.workspace_id)},
            )

        assigned = [
            AssignedWorkspace(
                id=row.workspace.id,
                name=row.workspace.name,
                role=row.role_name,
                organization_id=row.workspace.organization_id,
            )
            for row in await memberships.list_assigned(user.id)
        ]

        organization = await OrganizationRepository(session).get_by_id(
            workspace.organization_id
        )
        if organization is None:
            raise ReconciliationError(
                SSOErrorKind.ORGANIZATION_NOT_FOUND,
                "Organization not found",
                details={"organization_id": str(workspace.organization_id)},
            )

        features = await self.entitlements.features_for_subscription(
            organization.subscription_id
        )
        product_id = await self.entitlements.product_id_for_subscription(
            organization.subscription_id
        )

        await memberships.touch_last_login(membership)

        return LoggedInSession(
            id=user.id,
            email=user.email,
            name=user.name,
            role_id=role.id,
            active_organization_id=organization.id,
            active_organization_subscription_id=organization.subscription_id,
            active_organization_customer_id=organization.customer_id,
            active_organization_product_id=product_id,
            is_organization_admin=owner_role is not None and role.id == owner_role.id,
            active_workspace_id=workspace.id,
            active_workspace=workspace.name,
            assigned_workspaces=assigned,
            permissions=list(role.permissions or []),
            features=features,
            sso_provider=identity.provider_name,
            sso_token=identity.access_token,
            sso_refresh_token=identity.refresh_token,
        )

    async def _provision(
        self,
        session: AsyncSession,
        identity: ExternalIdentity,
        mode: PlatformMode,
    ) -> tuple[User, WorkspaceMembership]:
        """Create the account for an email seen for the first time."""
        email = identity.email or ""
        name = identity.name or email

        if mode == PlatformMode.ENTERPRISE:
            raise ReconciliationError(SSOErrorKind.USER_NOT_FOUND, "User not found")

        if mode == PlatformMode.CLOUD:
            account = await AccountRegistrar(session).register(
                UserDraft(email=email, name=name, status=UserStatus.ACTIVE)
            )
            if account.membership is None:
                raise ReconciliationError(
                    SSOErrorKind.WORKSPACE_NOT_FOUND, "Registered account has no workspace"
                )
            return account.user, account.membership

        organizations = await OrganizationRepository(session).list_all()
        if len(organizations) != 1:
            raise ReconciliationError(
                SSOErrorKind.PLATFORM_MISCONFIGURED,
                "Open source mode requires exactly one organization",
                details={"organization_count": len(organizations)},
            )
        organization = organizations[0]

        workspaces = await WorkspaceRepository(session).list_by_organization(organization.id)
        if not workspaces:
            raise ReconciliationError(
                SSOErrorKind.WORKSPACE_NOT_FOUND,
                "No workspace found for organization",
                details={"organization_id": str(organization.id)},
            )

        owner_role = await self._owner_role(session)
        user = await UserRepository(session).create(
            User(
                email=email,
                name=name,
                status=UserStatus.ACTIVE,
                organization_id=organization.id,
            )
        )
        membership = await WorkspaceMembershipRepository(session).create(
            WorkspaceMembership(
                user_id=user.id,
                workspace_id=workspaces[0].id,
                role_id=owner_role.id,
                created_by=user.id,
            )
        )
        logger.info(
            "sso_user_provisioned",
            user_id=str(user.id),
            workspace_id=str(workspaces[0].id),
        )
        return user, membership

    async def _resume(
        self,
        session: AsyncSession,
        user: User,
        identity: ExternalIdentity,
        mode: PlatformMode,
    ) -> tuple[User, WorkspaceMembership]:
        """Pick the membership an existing user signs in to."""
        memberships = WorkspaceMembershipRepository(session)

        if not await memberships.list_by_user(user.id):
            await self._heal_membership(session, user, mode)

        if user.status == UserStatus.INVITED:
            account = await AccountRegistrar(session).register(
                UserDraft(
                    email=identity.email or user.email,
                    name=identity.name or "",
                    status=UserStatus.ACTIVE,
                    user_id=user.id,
                )
            )
            user = account.user

        membership = await memberships.get_most_recent_by_user(user.id)
        if membership is None:
            raise ReconciliationError(
                SSOErrorKind.WORKSPACE_NOT_FOUND, "User has no workspace membership"
            )
        return user, membership

    async def _heal_membership(
        self, session: AsyncSession, user: User, mode: PlatformMode
    ) -> None:
        """Attach a user without any membership to its organization's first workspace.

        The user's own organization is used rather than the platform's first
        one, so in CLOUD mode a user is never attached to another tenant.
        In OPEN_SOURCE mode both are the same organization.
        """
        if mode == PlatformMode.ENTERPRISE:
            raise ReconciliationError(
                SSOErrorKind.WORKSPACE_NOT_FOUND, "User has no workspace membership"
            )

        workspaces = await WorkspaceRepository(session).list_by_organization(
            user.organization_id
        )
        if not workspaces:
            raise ReconciliationError(
                SSOErrorKind.WORKSPACE_NOT_FOUND,
                "No workspace found for organization",
                details={"organization_id": str(user.organization_id)},
            )

        owner_role = await self._owner_role(session)
        await WorkspaceMembershipRepository(session).create(
            WorkspaceMembership(
                user_id=user.id,
                workspace_id=workspaces[0].id,
                role_id=owner_role.id,
                created_by=user.id,
            )
        )
        logger.info(
            "sso_membership_healed",
            user_id=str(user.id),
            workspace_id=str(workspaces[0].id),
        )

    async def _owner_role(self, session: AsyncSession) -> Role:
        owner_role = await RoleRepository(session).get_by_name(GeneralRole.OWNER)
        if owner_role is None:
            raise ReconciliationError(SSOErrorKind.ROLE_NOT_FOUND, "Owner role not found")
        return owner_role

    async def _record_failure(
        self,
        identity: ExternalIdentity,
        exc: Exception,
        mode: PlatformMode,
    ) -> None:
        kind = exc.kind if isinstance(exc, ReconciliationError) else SSOErrorKind.SSO_LOGIN_FAILED
        detail = exc.message if isinstance(exc, AppException) else type(exc).__name__

        if isinstance(exc, AppException):
            logger.warning(
                "sso_login_failed",
                provider=identity.provider_name,
                kind=kind.value,
                detail=detail,
                mode=mode.value,
            )
        else:
            logger.exception(
                "sso_login_failed",
                provider=identity.provider_name,
                kind=kind.value,
                mode=mode.value,
            )

        try:
            await self.audit.record_login_activity(
                identity.email,
                _AUDIT_CODES.get(kind, LoginActivityCode.SSO_LOGIN_FAILED),
                f"{kind.value}: {detail}",
                identity.provider_name,
            )
        except Exception:
            logger.exception("login_activity_write_failed", provider=identity.provider_name)

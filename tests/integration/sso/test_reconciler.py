"""Integration tests for IdentityReconciler against an in-memory database."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from ssogate.config import Settings
from ssogate.core.audit import AuditService
from ssogate.core.constants import PlatformMode
from ssogate.modules.entitlements.services import FeatureEntitlementResolver
from ssogate.modules.organizations.models import Organization
from ssogate.modules.roles.constants import MEMBER_PERMISSIONS
from ssogate.modules.users.models import User, UserStatus
from ssogate.modules.workspaces.models import Workspace, WorkspaceMembership
from ssogate.sso.reconciler import IdentityReconciler
from ssogate.sso.schemas import ExternalIdentity, LoginFailed, LoginSucceeded, SSOErrorKind
from tests.factories import ExternalIdentityFactory
from tests.support import SeededTenant, count_rows, login_activity


pytestmark = pytest.mark.integration

FAILED_MESSAGE = "Auth0 SSO Login failed! Please contact your administrator."


@pytest.fixture
def reconciler(session_factory) -> IdentityReconciler:
    return IdentityReconciler(
        session_factory=session_factory,
        audit=AuditService(session_factory),
    )


async def add_user(
    session_factory,
    tenant: SeededTenant,
    email: str,
    status: UserStatus = UserStatus.ACTIVE,
    role_id=None,
    workspaces: list[Workspace] | None = None,
) -> User:
    """Persist a user with one membership per workspace, in order."""
    async with session_factory() as session, session.begin():
        user = User(
            email=email,
            name="Existing",
            status=status.value,
            organization_id=tenant.organization.id,
        )
        session.add(user)
        await session.flush()
        for workspace in workspaces if workspaces is not None else [tenant.workspace]:
            session.add(
                WorkspaceMembership(
                    user_id=user.id,
                    workspace_id=workspace.id,
                    role_id=role_id or tenant.owner_role.id,
                    created_by=user.id,
                )
            )
            await session.flush()
    return user


async def add_workspace(session_factory, tenant: SeededTenant, name: str) -> Workspace:
    async with session_factory() as session, session.begin():
        workspace = Workspace(organization_id=tenant.organization.id, name=name)
        session.add(workspace)
    return workspace


class TestOpenSourceMode:
    """Just-in-time provisioning into the single organization."""

    async def test_new_email_joins_the_organization_as_owner(
        self, reconciler, session_factory, tenant
    ):
        """A first login should create one user and one OWNER membership only."""
        identity = ExternalIdentity(
            email="new@acme.test", name=None, provider_name="Auth0 SSO"
        )

        result = await reconciler.reconcile(identity, PlatformMode.OPEN_SOURCE)

        assert isinstance(result, LoginSucceeded)
        session = result.session
        assert session.email == "new@acme.test"
        assert session.name == "new@acme.test"
        assert session.active_workspace == "main"
        assert session.active_workspace_id == tenant.workspace.id
        assert session.active_organization_id == tenant.organization.id
        assert session.is_organization_admin is True
        assert session.role_id == tenant.owner_role.id
        assert session.sso_provider == "Auth0 SSO"

        assert await count_rows(session_factory, User) == 1
        assert await count_rows(session_factory, WorkspaceMembership) == 1
        assert await count_rows(session_factory, Organization) == 1
        assert await count_rows(session_factory, Workspace) == 1

        async with session_factory() as db:
            membership = (await db.execute(select(WorkspaceMembership))).scalar_one()
        assert membership.created_by == session.id
        assert membership.last_login is not None

    async def test_joins_first_workspace_of_organization(
        self, reconciler, session_factory, roles
    ):
        """Of several workspaces created together, the first one is joined."""
        async with session_factory() as session, session.begin():
            organization = Organization(name="acme")
            session.add(organization)
            await session.flush()
            session.add_all(
                [
                    Workspace(organization_id=organization.id, name="zeta"),
                    Workspace(organization_id=organization.id, name="alpha"),
                ]
            )

        result = await reconciler.reconcile(
            ExternalIdentityFactory.build(), PlatformMode.OPEN_SOURCE
        )

        assert isinstance(result, LoginSucceeded)
        assert result.session.active_workspace == "zeta"

    async def test_active_workspace_is_assigned(self, reconciler, tenant):
        result = await reconciler.reconcile(
            ExternalIdentityFactory.build(), PlatformMode.OPEN_SOURCE
        )

        assert isinstance(result, LoginSucceeded)
        assigned_ids = [w.id for w in result.session.assigned_workspaces]
        assert result.session.active_workspace_id in assigned_ids
        assert result.session.assigned_workspaces[0].role == "owner"
        assert result.session.assigned_workspaces[0].organization_id == tenant.organization.id

    async def test_no_organization_is_fatal(self, reconciler, session_factory, roles):
        """Zero organizations should fail without creating anything."""
        identity = ExternalIdentityFactory.build()

        result = await reconciler.reconcile(identity, PlatformMode.OPEN_SOURCE)

        assert result == LoginFailed(kind=SSOErrorKind.SSO_LOGIN_FAILED, message=FAILED_MESSAGE)
        assert await count_rows(session_factory, User) == 0

        [entry] = await login_activity(session_factory)
        assert entry.activity_code == "sso_login_failed"
        assert entry.username == identity.email
        assert entry.message.startswith("platform_misconfigured")

    async def test_several_organizations_is_fatal(self, reconciler, session_factory, tenant):
        async with session_factory() as session, session.begin():
            session.add(Organization(name="second"))

        result = await reconciler.reconcile(
            ExternalIdentityFactory.build(), PlatformMode.OPEN_SOURCE
        )

        assert isinstance(result, LoginFailed)
        assert await count_rows(session_factory, User) == 0
        assert await count_rows(session_factory, WorkspaceMembership) == 0

    async def test_organization_without_workspace_is_fatal(
        self, reconciler, session_factory, roles
    ):
        async with session_factory() as session, session.begin():
            session.add(Organization(name="empty"))

        result = await reconciler.reconcile(
            ExternalIdentityFactory.build(), PlatformMode.OPEN_SOURCE
        )

        assert isinstance(result, LoginFailed)
        assert await count_rows(session_factory, User) == 0

    async def test_missing_owner_role_is_fatal(self, reconciler, session_factory):
        async with session_factory() as session, session.begin():
            organization = Organization(name="acme")
            session.add(organization)
            await session.flush()
            session.add(Workspace(organization_id=organization.id, name="main"))

        result = await reconciler.reconcile(
            ExternalIdentityFactory.build(), PlatformMode.OPEN_SOURCE
        )

        assert isinstance(result, LoginFailed)
        [entry] = await login_activity(session_factory)
        assert entry.message.startswith("role_not_found")


class TestEnterpriseMode:
    """Only pre-provisioned accounts may sign in."""

    async def test_unknown_email_is_rejected(self, reconciler, session_factory, tenant):
        """An unknown email should fail with zero new rows."""
        identity = ExternalIdentityFactory.build()

        result = await reconciler.reconcile(identity, PlatformMode.ENTERPRISE)

        assert result == LoginFailed(kind=SSOErrorKind.SSO_LOGIN_FAILED, message=FAILED_MESSAGE)
        assert await count_rows(session_factory, User) == 0
        assert await count_rows(session_factory, WorkspaceMembership) == 0
        assert await count_rows(session_factory, Organization) == 1

        [entry] = await login_activity(session_factory)
        assert entry.activity_code == "user_not_found"

    async def test_known_email_signs_in(self, reconciler, session_factory, tenant):
        await add_user(session_factory, tenant, "known@acme.test")

        result = await reconciler.reconcile(
            ExternalIdentity(email="known@acme.test", provider_name="Auth0 SSO"),
            PlatformMode.ENTERPRISE,
        )

        assert isinstance(result, LoginSucceeded)
        assert result.session.name == "Existing"

    async def test_user_without_membership_is_rejected(
        self, reconciler, session_factory, tenant
    ):
        await add_user(session_factory, tenant, "lonely@acme.test", workspaces=[])

        result = await reconciler.reconcile(
            ExternalIdentity(email="lonely@acme.test", provider_name="Auth0 SSO"),
            PlatformMode.ENTERPRISE,
        )

        assert isinstance(result, LoginFailed)
        assert await count_rows(session_factory, WorkspaceMembership) == 0


class TestCloudMode:
    """Each new email bootstraps its own tenant."""

    async def test_unknown_email_bootstraps_tenant(self, reconciler, session_factory, roles):
        result = await reconciler.reconcile(
            ExternalIdentity(email="founder@new.test", name="Founder", provider_name="Auth0 SSO"),
            PlatformMode.CLOUD,
        )

        assert isinstance(result, LoginSucceeded)
        assert result.session.is_organization_admin is True
        assert result.session.name == "Founder"
        assert await count_rows(session_factory, Organization) == 1
        assert await count_rows(session_factory, Workspace) == 1
        assert await count_rows(session_factory, User) == 1
        assert await count_rows(session_factory, WorkspaceMembership) == 1

    async def test_each_new_email_gets_its_own_organization(
        self, reconciler, session_factory, roles
    ):
        first = await reconciler.reconcile(ExternalIdentityFactory.build(), PlatformMode.CLOUD)
        second = await reconciler.reconcile(ExternalIdentityFactory.build(), PlatformMode.CLOUD)

        assert isinstance(first, LoginSucceeded)
        assert isinstance(second, LoginSucceeded)
        assert (
            first.session.active_organization_id != second.session.active_organization_id
        )
        assert await count_rows(session_factory, Organization) == 2


class TestExistingUsers:
    """Logins for accounts that already exist."""

    async def test_repeated_logins_never_duplicate(self, reconciler, session_factory, tenant):
        identity = ExternalIdentityFactory.build()

        for _ in range(3):
            result = await reconciler.reconcile(identity, PlatformMode.OPEN_SOURCE)
            assert isinstance(result, LoginSucceeded)

        assert await count_rows(session_factory, User) == 1
        assert await count_rows(session_factory, WorkspaceMembership) == 1

    async def test_email_match_ignores_case(self, reconciler, session_factory, tenant):
        user = await add_user(session_factory, tenant, "Known@Acme.test")

        result = await reconciler.reconcile(
            ExternalIdentity(email="known@acme.test", provider_name="Auth0 SSO"),
            PlatformMode.OPEN_SOURCE,
        )

        assert isinstance(result, LoginSucceeded)
        assert result.session.id == user.id
        assert await count_rows(session_factory, User) == 1
        assert await count_rows(session_factory, WorkspaceMembership) == 1

    async def test_member_role_is_not_admin(self, reconciler, session_factory, tenant):
        await add_user(
            session_factory, tenant, "member@acme.test", role_id=tenant.member_role.id
        )

        result = await reconciler.reconcile(
            ExternalIdentity(email="member@acme.test", provider_name="Google SSO"),
            PlatformMode.OPEN_SOURCE,
        )

        assert isinstance(result, LoginSucceeded)
        assert result.session.is_organization_admin is False
        assert result.session.permissions == MEMBER_PERMISSIONS
        assert result.session.sso_provider == "Google SSO"

    async def test_missing_membership_is_healed(self, reconciler, session_factory, tenant):
        await add_user(session_factory, tenant, "orphan@acme.test", workspaces=[])

        result = await reconciler.reconcile(
            ExternalIdentity(email="orphan@acme.test", provider_name="Auth0 SSO"),
            PlatformMode.OPEN_SOURCE,
        )

        assert isinstance(result, LoginSucceeded)
        assert result.session.active_workspace_id == tenant.workspace.id
        assert result.session.is_organization_admin is True
        assert await count_rows(session_factory, WorkspaceMembership) == 1

    async def test_invited_user_is_activated(self, reconciler, session_factory, tenant):
        user = await add_user(
            session_factory, tenant, "invitee@acme.test", status=UserStatus.INVITED
        )

        result = await reconciler.reconcile(
            ExternalIdentity(
                email="invitee@acme.test", name="Ivy Invitee", provider_name="Auth0 SSO"
            ),
            PlatformMode.OPEN_SOURCE,
        )

        assert isinstance(result, LoginSucceeded)
        assert result.session.name == "Ivy Invitee"
        async with session_factory() as session:
            stored = await session.get(User, user.id)
        assert stored.status == UserStatus.ACTIVE
        assert stored.name == "Ivy Invitee"
        assert await count_rows(session_factory, User) == 1

    async def test_resumes_most_recent_workspace(self, reconciler, session_factory, tenant):
        """The membership used last should be the one signed in to."""
        side = await add_workspace(session_factory, tenant, "side")
        user = await add_user(
            session_factory, tenant, "multi@acme.test", workspaces=[tenant.workspace, side]
        )
        identity = ExternalIdentity(email="multi@acme.test", provider_name="Auth0 SSO")

        first = await reconciler.reconcile(identity, PlatformMode.OPEN_SOURCE)
        assert isinstance(first, LoginSucceeded)
        assert first.session.active_workspace == "main"
        assert [w.name for w in first.session.assigned_workspaces] == ["main", "side"]

        async with session_factory() as session, session.begin():
            membership = (
                await session.execute(
                    select(WorkspaceMembership).where(
                        WorkspaceMembership.user_id == user.id,
                        WorkspaceMembership.workspace_id == side.id,
                    )
                )
            ).scalar_one()
            membership.last_login = datetime(2999, 1, 1, tzinfo=UTC)

        second = await reconciler.reconcile(identity, PlatformMode.OPEN_SOURCE)
        assert isinstance(second, LoginSucceeded)
        assert second.session.active_workspace == "side"


class TestEntitlementsAndFailures:
    """Entitlements in the session, and rollback on failure."""

    async def test_features_and_product_come_from_subscription(self, session_factory, tenant):
        async with session_factory() as session, session.begin():
            organization = await session.get(Organization, tenant.organization.id)
            organization.subscription_id = "sub_pro"
            organization.customer_id = "cus_1"

        reconciler = IdentityReconciler(
            session_factory=session_factory,
            audit=AuditService(session_factory),
            entitlements=FeatureEntitlementResolver(
                Settings(
                    subscription_products={"sub_pro": "prod_pro"},
                    product_features={"prod_pro": ["sso", "audit_logs"]},
                )
            ),
        )

        result = await reconciler.reconcile(
            ExternalIdentityFactory.build(), PlatformMode.OPEN_SOURCE
        )

        assert isinstance(result, LoginSucceeded)
        assert result.session.features == ["audit_logs", "sso"]
        assert result.session.active_organization_product_id == "prod_pro"
        assert result.session.active_organization_subscription_id == "sub_pro"
        assert result.session.active_organization_customer_id == "cus_1"

    async def test_late_failure_rolls_back_provisioning(self, session_factory, tenant):
        """A failure after the user is created should leave no trace but the audit entry."""
        entitlements = MagicMock(spec=FeatureEntitlementResolver)
        entitlements.features_for_subscription = AsyncMock(
            side_effect=RuntimeError("catalog unavailable")
        )
        reconciler = IdentityReconciler(
            session_factory=session_factory,
            audit=AuditService(session_factory),
            entitlements=entitlements,
        )

        result = await reconciler.reconcile(
            ExternalIdentityFactory.build(), PlatformMode.OPEN_SOURCE
        )

        assert result == LoginFailed(kind=SSOErrorKind.SSO_LOGIN_FAILED, message=FAILED_MESSAGE)
        assert await count_rows(session_factory, User) == 0
        assert await count_rows(session_factory, WorkspaceMembership) == 0
        [entry] = await login_activity(session_factory)
        assert entry.message == "sso_login_failed: RuntimeError"

    async def test_identity_without_email_fails(self, reconciler, session_factory, tenant):
        result = await reconciler.reconcile(
            ExternalIdentity(email=None, provider_name="Auth0 SSO"),
            PlatformMode.OPEN_SOURCE,
        )

        assert isinstance(result, LoginFailed)
        [entry] = await login_activity(session_factory)
        assert entry.activity_code == "unknown_identity"
        assert entry.username == "<empty>"

    async def test_audit_failure_still_returns_login_failed(self, session_factory, roles):
        audit = MagicMock(spec=AuditService)
        audit.record_login_activity = AsyncMock(side_effect=RuntimeError("db gone"))
        reconciler = IdentityReconciler(session_factory=session_factory, audit=audit)

        result = await reconciler.reconcile(
            ExternalIdentityFactory.build(), PlatformMode.ENTERPRISE
        )

        assert isinstance(result, LoginFailed)
        audit.record_login_activity.assert_awaited_once()

    async def test_mode_defaults_to_resolver(self, session_factory, tenant):
        platform = MagicMock()
        platform.current_mode.return_value = PlatformMode.ENTERPRISE
        reconciler = IdentityReconciler(
            session_factory=session_factory,
            platform=platform,
            audit=AuditService(session_factory),
        )

        result = await reconciler.reconcile(ExternalIdentityFactory.build())

        assert isinstance(result, LoginFailed)
        platform.current_mode.assert_called_once()

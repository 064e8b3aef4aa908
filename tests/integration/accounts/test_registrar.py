"""Integration tests for AccountRegistrar."""

import pytest

from ssogate.core.errors import NotFoundError
from ssogate.modules.accounts.schemas import UserDraft
from ssogate.modules.accounts.services import DEFAULT_WORKSPACE_NAME, AccountRegistrar
from ssogate.modules.organizations.models import Organization
from ssogate.modules.users.models import User, UserStatus
from ssogate.modules.workspaces.models import WorkspaceMembership
from tests.support import count_rows


pytestmark = pytest.mark.integration


class TestBootstrap:
    """Registering a brand-new account."""

    async def test_creates_tenant_owned_by_user(self, session_factory, roles):
        async with session_factory() as session, session.begin():
            account = await AccountRegistrar(session).register(
                UserDraft(email="founder@new.test", name="Fran")
            )

        assert account.user.email == "founder@new.test"
        assert account.user.status == UserStatus.ACTIVE
        assert account.workspace is not None
        assert account.workspace.name == DEFAULT_WORKSPACE_NAME
        assert account.membership is not None
        assert account.membership.created_by == account.user.id
        assert account.membership.role_id == roles["owner"].id

        async with session_factory() as session:
            organization = await session.get(Organization, account.user.organization_id)
        assert organization.name == "Fran's Organization"
        assert account.workspace.organization_id == organization.id

    async def test_missing_owner_role_raises(self, session_factory):
        with pytest.raises(NotFoundError):
            async with session_factory() as session, session.begin():
                await AccountRegistrar(session).register(
                    UserDraft(email="founder@new.test", name="Fran")
                )

        assert await count_rows(session_factory, Organization) == 0

    async def test_unknown_user_id_bootstraps(self, session_factory, roles):
        """A user_id that names no invited account is ignored."""
        async with session_factory() as session, session.begin():
            first = await AccountRegistrar(session).register(
                UserDraft(email="a@new.test", name="A")
            )
            second = await AccountRegistrar(session).register(
                UserDraft(email="b@new.test", name="B", user_id=first.user.id)
            )

        assert second.user.id != first.user.id
        assert await count_rows(session_factory, Organization) == 2


class TestFinalizeInvite:
    """Registering an invited account."""

    @pytest.fixture
    async def invited(self, session_factory, tenant) -> User:
        async with session_factory() as session, session.begin():
            user = User(
                email="invitee@acme.test",
                name="Invited",
                status=UserStatus.INVITED.value,
                organization_id=tenant.organization.id,
            )
            session.add(user)
            await session.flush()
            session.add(
                WorkspaceMembership(
                    user_id=user.id,
                    workspace_id=tenant.workspace.id,
                    role_id=tenant.member_role.id,
                )
            )
        return user

    async def test_activates_in_place(self, session_factory, tenant, invited):
        async with session_factory() as session, session.begin():
            account = await AccountRegistrar(session).register(
                UserDraft(email="invitee@acme.test", name="Ivy", user_id=invited.id)
            )

        assert account.user.id == invited.id
        assert account.user.status == UserStatus.ACTIVE
        assert account.user.name == "Ivy"
        assert account.workspace.id == tenant.workspace.id
        assert account.membership.role_id == tenant.member_role.id
        assert await count_rows(session_factory, Organization) == 1
        assert await count_rows(session_factory, User) == 1

    async def test_blank_name_keeps_existing(self, session_factory, invited):
        async with session_factory() as session, session.begin():
            account = await AccountRegistrar(session).register(
                UserDraft(email="invitee@acme.test", name="", user_id=invited.id)
            )

        assert account.user.name == "Invited"

"""Integration tests for the start-up platform checks."""

import pytest

from ssogate.core.constants import PlatformMode
from ssogate.core.errors import PlatformMisconfiguredError
from ssogate.modules.accounts.invariants import verify_platform_invariants
from ssogate.modules.organizations.models import Organization


pytestmark = pytest.mark.integration


async def check(session_factory, mode: PlatformMode) -> list[str]:
    async with session_factory() as session:
        return await verify_platform_invariants(session, mode)


class TestOpenSource:
    """OPEN_SOURCE requires a single organization with a workspace."""

    async def test_seeded_tenant_passes(self, session_factory, tenant):
        assert await check(session_factory, PlatformMode.OPEN_SOURCE) == []

    async def test_no_organization_is_a_warning(self, session_factory, roles):
        warnings = await check(session_factory, PlatformMode.OPEN_SOURCE)

        assert len(warnings) == 1
        assert "No organization" in warnings[0]

    async def test_second_organization_is_fatal(self, session_factory, tenant):
        async with session_factory() as session, session.begin():
            session.add(Organization(name="intruder"))

        with pytest.raises(PlatformMisconfiguredError) as exc_info:
            await check(session_factory, PlatformMode.OPEN_SOURCE)

        assert exc_info.value.details["organization_count"] == 2

    async def test_organization_without_workspace_is_fatal(self, session_factory, roles):
        async with session_factory() as session, session.begin():
            session.add(Organization(name="empty"))

        with pytest.raises(PlatformMisconfiguredError):
            await check(session_factory, PlatformMode.OPEN_SOURCE)


class TestOtherModes:
    """ENTERPRISE and CLOUD only need the reserved roles."""

    @pytest.mark.parametrize("mode", [PlatformMode.ENTERPRISE, PlatformMode.CLOUD])
    async def test_many_organizations_are_allowed(self, session_factory, roles, mode):
        async with session_factory() as session, session.begin():
            session.add_all([Organization(name="a"), Organization(name="b")])

        assert await check(session_factory, mode) == []

    async def test_missing_owner_role_is_a_warning(self, session_factory):
        warnings = await check(session_factory, PlatformMode.ENTERPRISE)

        assert warnings == ["Owner role is not seeded; SSO logins will fail"]

"""Integration tests for unit_of_work transaction boundaries."""

import asyncio

import pytest

from ssogate.core.database import unit_of_work
from ssogate.modules.organizations.models import Organization
from tests.support import count_rows


pytestmark = pytest.mark.integration


async def test_commits_on_normal_exit(session_factory):
    async with unit_of_work(session_factory) as session:
        session.add(Organization(name="kept"))

    assert await count_rows(session_factory, Organization) == 1


async def test_rolls_back_on_error(session_factory):
    with pytest.raises(RuntimeError):
        async with unit_of_work(session_factory) as session:
            session.add(Organization(name="discarded"))
            await session.flush()
            raise RuntimeError("boom")

    assert await count_rows(session_factory, Organization) == 0


async def test_rolls_back_on_cancellation(session_factory):
    """A cancelled login must not leave partial rows behind."""
    with pytest.raises(asyncio.CancelledError):
        async with unit_of_work(session_factory) as session:
            session.add(Organization(name="discarded"))
            await session.flush()
            raise asyncio.CancelledError()

    assert await count_rows(session_factory, Organization) == 0

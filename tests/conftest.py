"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ssogate.core.audit import AuditService
from ssogate.core.database import Base, get_db
from ssogate.main import create_app
from ssogate.modules.accounts.seeding import seed_roles, seed_tenant
from ssogate.modules.roles.models import GeneralRole, Role
from ssogate.modules.roles.repos import RoleRepository
from ssogate.modules.workspaces.repos import WorkspaceRepository
from ssogate.sso.dependencies import (
    get_audit_service,
    get_provider_registry,
    get_reconciler,
    get_session_store,
)
from ssogate.sso.reconciler import IdentityReconciler
from ssogate.sso.registry import ProviderRegistry
from tests.support import InMemorySessionStore, SeededTenant


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================
# Database
# ============================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory database shared by every session of one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ============================================================
# Tenant fixtures
# ============================================================


@pytest.fixture
async def roles(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, Role]:
    """Seed the reserved roles."""
    async with session_factory() as session, session.begin():
        await seed_roles(session)
        repo = RoleRepository(session)
        owner = await repo.get_by_name(GeneralRole.OWNER)
        member = await repo.get_by_name(GeneralRole.MEMBER)

    return {GeneralRole.OWNER: owner, GeneralRole.MEMBER: member}


@pytest.fixture
async def tenant(
    session_factory: async_sessionmaker[AsyncSession], roles: dict[str, Role]
) -> SeededTenant:
    """Seed organization "acme" owning workspace "main"."""
    async with session_factory() as session, session.begin():
        organization = await seed_tenant(session, "acme", "main")
        assert organization is not None
        workspaces = await WorkspaceRepository(session).list_by_organization(organization.id)

    return SeededTenant(
        organization=organization,
        workspace=workspaces[0],
        owner_role=roles[GeneralRole.OWNER],
        member_role=roles[GeneralRole.MEMBER],
    )


# ============================================================
# Application
# ============================================================


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def registry() -> ProviderRegistry:
    """A provider registry private to one test."""
    return ProviderRegistry()


@pytest.fixture
def audit_service(session_factory: async_sessionmaker[AsyncSession]) -> AuditService:
    return AuditService(session_factory)


@pytest.fixture
def app(
    session_factory: async_sessionmaker[AsyncSession],
    session_store: InMemorySessionStore,
    registry: ProviderRegistry,
    audit_service: AuditService,
) -> FastAPI:
    """Create test application instance wired to the in-memory database."""
    application = create_app(registry=registry, check_invariants=False)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_store] = lambda: session_store
    application.dependency_overrides[get_audit_service] = lambda: audit_service
    application.dependency_overrides[get_provider_registry] = lambda: registry
    application.dependency_overrides[get_reconciler] = lambda: IdentityReconciler(
        session_factory=session_factory, audit=audit_service
    )

    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

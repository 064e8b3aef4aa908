"""Workspace and membership repositories."""

from datetime import UTC, datetime
from typing import NamedTuple
from uuid import UUID

from sqlalchemy import select

from ssogate.api.dependencies import DBSession
from ssogate.modules.roles.models import Role
from ssogate.modules.workspaces.models import Workspace, WorkspaceMembership


class AssignedWorkspaceRow(NamedTuple):
    """A membership joined with its workspace and role name."""

    membership: WorkspaceMembership
    workspace: Workspace
    role_name: str | None


class WorkspaceRepository:
    """Repository for Workspace database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, workspace: Workspace) -> Workspace:
        """Persist a new workspace."""
        self.session.add(workspace)
        await self.session.flush()
        await self.session.refresh(workspace)
        return workspace

    async def get_by_id(self, workspace_id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        return await self.session.get(Workspace, workspace_id)

    async def list_by_organization(self, organization_id: UUID) -> list[Workspace]:
        """List an organization's workspaces, oldest first."""
        stmt = (
            select(Workspace)
            .where(Workspace.organization_id == organization_id)
            .order_by(Workspace.created_at, Workspace.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class WorkspaceMembershipRepository:
    """Repository for WorkspaceMembership database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, membership: WorkspaceMembership) -> WorkspaceMembership:
        """Persist a new membership."""
        self.session.add(membership)
        await self.session.flush()
        await self.session.refresh(membership)
        return membership

    async def list_by_user(self, user_id: UUID) -> list[WorkspaceMembership]:
        """List a user's memberships in insertion order."""
        stmt = (
            select(WorkspaceMembership)
            .where(WorkspaceMembership.user_id == user_id)
            .order_by(WorkspaceMembership.created_at, WorkspaceMembership.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_assigned(self, user_id: UUID) -> list[AssignedWorkspaceRow]:
        """List a user's memberships with workspace and role name, in insertion order."""
        stmt = (
            select(WorkspaceMembership, Workspace, Role.name)
            .join(Workspace, Workspace.id == WorkspaceMembership.workspace_id)
            .outerjoin(Role, Role.id == WorkspaceMembership.role_id)
            .where(WorkspaceMembership.user_id == user_id)
            .order_by(WorkspaceMembership.created_at, WorkspaceMembership.id)
        )
        result = await self.session.execute(stmt)
        return [AssignedWorkspaceRow(*row) for row in result.all()]

    async def get_by_workspace_and_user(
        self, workspace_id: UUID, user_id: UUID
    ) -> WorkspaceMembership | None:
        """Get the membership binding user_id to workspace_id."""
        stmt = select(WorkspaceMembership).where(
            WorkspaceMembership.workspace_id == workspace_id,
            WorkspaceMembership.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_most_recent_by_user(self, user_id: UUID) -> WorkspaceMembership | None:
        """Get the membership the user last signed in to.

        Memberships never used sort after used ones; ties fall back to
        insertion order.
        """
        stmt = (
            select(WorkspaceMembership)
            .where(WorkspaceMembership.user_id == user_id)
            .order_by(
                WorkspaceMembership.last_login.desc().nulls_last(),
                WorkspaceMembership.created_at,
                WorkspaceMembership.id,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def touch_last_login(
        self, membership: WorkspaceMembership, when: datetime | None = None
    ) -> None:
        """Stamp the membership as the user's most recent login."""
        membership.last_login = when or datetime.now(UTC)
        await self.session.flush()

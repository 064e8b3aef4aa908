"""Workspace and workspace membership database models."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from ssogate.core.constants import MAX_NAME_LENGTH
from ssogate.core.database.base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    insertion_timestamp,
)


class Workspace(Base, UUIDMixin, TimestampMixin):
    """A workspace owned by exactly one organization.

    created_at is stamped client-side so that an organization's first
    workspace is well defined.
    """

    __tablename__ = "workspaces"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=insertion_timestamp,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id}, name={self.name})>"


class WorkspaceMembership(Base, UUIDMixin, TimestampMixin):
    """Binds a user to a workspace with a role.

    A user holds at most one membership per workspace. created_at is
    stamped client-side and strictly increasing, so insertion order is
    stable for tie-breaking.

    Attributes:
        user_id: The member
        workspace_id: The workspace joined
        role_id: The role held in that workspace
        created_by: The user who created the membership
        last_login: When the user last signed in to this workspace
    """

    __tablename__ = "workspace_memberships"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_workspace_membership"),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
    )
    created_by: Mapped[UUID | None] = mapped_column(
        nullable=True,
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=insertion_timestamp,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<WorkspaceMembership(user_id={self.user_id}, "
            f"workspace_id={self.workspace_id}, role_id={self.role_id})>"
        )

"""Role database models."""

from enum import StrEnum

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from ssogate.core.constants import MAX_ROLE_NAME_LENGTH
from ssogate.core.database.base import Base, TimestampMixin, UUIDMixin


class GeneralRole(StrEnum):
    """Platform-reserved role names."""

    OWNER = "owner"
    MEMBER = "member"


class Role(Base, UUIDMixin, TimestampMixin):
    """A named permission set assigned through workspace memberships.

    Attributes:
        name: Unique role name; OWNER grants organization-admin status
        description: Human-readable description
        permissions: Permission strings such as "chatflows:view"
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    permissions: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name})>"

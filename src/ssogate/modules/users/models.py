"""User database models."""

from enum import StrEnum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ssogate.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from ssogate.core.database.base import Base, TimestampMixin, UUIDMixin


class UserStatus(StrEnum):
    """Account lifecycle status."""

    ACTIVE = "active"
    INVITED = "invited"


class User(Base, UUIDMixin, TimestampMixin):
    """A platform account, matched to external identities by email.

    Attributes:
        email: Email address, unique ignoring case
        name: Display name
        status: ACTIVE, or INVITED until the first successful login
        organization_id: The organization that owns the account
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=UserStatus.ACTIVE.value,
        nullable=False,
    )
    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, status={self.status})>"


Index("uq_users_email_lower", func.lower(User.email), unique=True)

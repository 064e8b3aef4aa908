"""Login activity audit model.

Every SSO login attempt, success or failure, and every logout leaves one
row here.
"""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from ssogate.core.constants import (
    MAX_ACTIVITY_CODE_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_LOGIN_MODE_LENGTH,
)
from ssogate.core.database.base import Base, UUIDMixin


class LoginActivityCode(StrEnum):
    """Outcome recorded for a login activity entry."""

    LOGIN_SUCCESS = "login_success"
    LOGOUT_SUCCESS = "logout_success"
    UNKNOWN_IDENTITY = "unknown_identity"
    USER_NOT_FOUND = "user_not_found"
    SSO_LOGIN_FAILED = "sso_login_failed"
    PROVIDER_EXCHANGE_FAILED = "provider_exchange_failed"


class LoginActivity(Base, UUIDMixin):
    """Audit entry for a login or logout.

    Attributes:
        username: Email of the identity, or "<empty>" when the provider sent none
        activity_code: A LoginActivityCode value
        message: Human-readable detail
        login_mode: Display name of the provider involved
        attempted_at: When the activity happened
    """

    __tablename__ = "login_activity"

    username: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        index=True,
    )
    activity_code: Mapped[str] = mapped_column(
        String(MAX_ACTIVITY_CODE_LENGTH),
        nullable=False,
        index=True,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    login_mode: Mapped[str] = mapped_column(
        String(MAX_LOGIN_MODE_LENGTH),
        nullable=False,
    )
    attempted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<LoginActivity(id={self.id}, username={self.username}, "
            f"activity_code={self.activity_code})>"
        )

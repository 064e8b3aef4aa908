"""Organization database models."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ssogate.core.constants import MAX_EXTERNAL_ID_LENGTH, MAX_NAME_LENGTH
from ssogate.core.database.base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    insertion_timestamp,
)


class Organization(Base, UUIDMixin, TimestampMixin):
    """Top-level tenant.

    Attributes:
        name: Display name
        subscription_id: Billing subscription, drives feature entitlements
        customer_id: Billing customer reference
        created_at: Stamped client-side; orders organizations oldest first
    """

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    subscription_id: Mapped[str | None] = mapped_column(
        String(MAX_EXTERNAL_ID_LENGTH),
        nullable=True,
    )
    customer_id: Mapped[str | None] = mapped_column(
        String(MAX_EXTERNAL_ID_LENGTH),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=insertion_timestamp,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"

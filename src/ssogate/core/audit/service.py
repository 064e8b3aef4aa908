"""Login activity audit service.

Entries are written in their own unit of work so that an audit row for a
failed login survives the rollback of the login transaction.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ssogate.core.audit.models import LoginActivity, LoginActivityCode
from ssogate.core.constants import EMPTY_USERNAME
from ssogate.core.database.session import unit_of_work


log = structlog.get_logger()


class AuditService:
    """Service for creating login activity entries."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        """Initialize audit service.

        Args:
            session_factory: Session factory for the audit unit of work;
                defaults to the application factory
        """
        self.session_factory = session_factory

    async def record_login_activity(
        self,
        email: str | None,
        code: LoginActivityCode,
        message: str,
        provider_name: str,
    ) -> LoginActivity:
        """Create and commit a login activity entry.

        Args:
            email: Identity email; "<empty>" is stored when missing
            code: Outcome of the activity
            message: Human-readable detail
            provider_name: Display name of the provider

        Returns:
            Created login activity entry
        """
        entry = LoginActivity(
            username=email or EMPTY_USERNAME,
            activity_code=code.value,
            message=message,
            login_mode=provider_name,
        )

        async with unit_of_work(self.session_factory) as session:
            session.add(entry)
            await session.flush()

        log.info(
            "login_activity_recorded",
            activity_code=code.value,
            login_mode=provider_name,
        )
        return entry

    async def list_for_username(self, username: str) -> list[LoginActivity]:
        """List entries for a username, oldest first."""
        async with unit_of_work(self.session_factory) as session:
            stmt = (
                select(LoginActivity)
                .where(LoginActivity.username == username)
                .order_by(LoginActivity.attempted_at, LoginActivity.id)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

"""User repository for database operations."""

from uuid import UUID

from sqlalchemy import func, select

from ssogate.api.dependencies import DBSession
from ssogate.modules.users.models import User


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email address, ignoring case.

        Args:
            email: The user's email

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def update(self, user: User) -> User:
        """Flush pending changes on a user and reload it."""
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def lock_email(self, email: str) -> None:
        """Serialize provisioning for one email until the transaction ends.

        Takes a transaction-scoped advisory lock on PostgreSQL, keyed like
        get_by_email so that differently-cased spellings share one lock. Other
        backends rely on the unique constraint on users.email alone.
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return
        await self.session.execute(
            select(func.pg_advisory_xact_lock(func.hashtext(email.lower())))
        )

"""Repository for user data access operations."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from policy_assistant.database.models import User
from policy_assistant.repositories.base_repository import BaseRepository
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User entity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive).

        Args:
            email: User email address

        Returns:
            User instance or None if not found
        """
        stmt = select(User).where(User.email == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(self, email: str, name: str, password_hash: str) -> User:
        """Create a new user with an already hashed password."""
        user = await self.create(
            email=email.lower(),
            name=name,
            password_hash=password_hash,
        )
        LOGGER.info(f"Created user: {user.id}")
        return user

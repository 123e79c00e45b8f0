"""User registration and login."""

import asyncio
from typing import Any, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from policy_assistant.core.config import AuthSettings
from policy_assistant.core.exceptions import AppError, AuthenticationError, ConflictError
from policy_assistant.core.jwt import JWTService
from policy_assistant.core.security import hash_password, verify_password
from policy_assistant.database.models import User
from policy_assistant.repositories.user_repository import UserRepository
from policy_assistant.services.base_service import BaseService
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserService(BaseService):
    """Service for account management and token issuing."""

    def __init__(self, session: AsyncSession, auth_settings: AuthSettings):
        self.user_repo = UserRepository(session)
        super().__init__(self.user_repo)
        self.session = session
        self.auth_settings = auth_settings
        self.jwt_service = JWTService(auth_settings)

    async def run(self, *args, **kwargs) -> Any:
        action = kwargs.get("action")

        if action == "register":
            return await self._register_logic(
                kwargs["email"], kwargs["password"], kwargs["name"]
            )
        elif action == "login":
            return await self._login_logic(kwargs["email"], kwargs["password"])
        else:
            raise AppError(f"Unknown action: {action}")

    async def register(self, email: str, password: str, name: str) -> Tuple[User, str]:
        """Create an account and issue its first token.

        Raises:
            ConflictError: If the email is already registered
        """
        return await self.execute(action="register", email=email, password=password, name=name)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """Check credentials and issue a token.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong
        """
        return await self.execute(action="login", email=email, password=password)

    async def _register_logic(self, email: str, password: str, name: str) -> Tuple[User, str]:
        if await self.user_repo.get_by_email(email) is not None:
            raise ConflictError("User already exists")

        password_hash = await asyncio.to_thread(
            hash_password, password, self.auth_settings.bcrypt_rounds
        )
        try:
            user = await self.user_repo.create_user(email, name, password_hash)
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            await self.session.rollback()
            raise ConflictError("User already exists", original_error=e)

        return user, self.jwt_service.issue_token(user.id, user.email)

    async def _login_logic(self, email: str, password: str) -> Tuple[User, str]:
        user = await self.user_repo.get_by_email(email)
        password_ok = user is not None and await asyncio.to_thread(
            verify_password, password, user.password_hash
        )
        if not password_ok:
            LOGGER.warning("Rejected login attempt", extra={"email": email.lower()})
            raise AuthenticationError("Invalid credentials")

        LOGGER.info(f"User logged in: {user.id}")
        return user, self.jwt_service.issue_token(user.id, user.email)

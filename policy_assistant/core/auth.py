"""Authentication dependencies for FastAPI routes.

This module provides FastAPI dependency injection functions for
JWT token verification and user authentication.
"""

from typing import Annotated, Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from policy_assistant.core.database import get_async_session
from policy_assistant.core.jwt import JWTService
from policy_assistant.repositories.user_repository import UserRepository
from policy_assistant.schemas.auth import CurrentUser
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_jwt_service(request: Request) -> JWTService:
    """Build the token service from the application's auth settings."""
    return JWTService(request.app.state.settings.auth)


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
) -> CurrentUser:
    """Get the current authenticated user from JWT token.

    This dependency:
    - Extracts Bearer token from Authorization header
    - Verifies JWT signature and expiry
    - Loads the user the token was issued for

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired, or
            the user no longer exists
    """
    if not credentials:
        LOGGER.warning("No authorization credentials provided")
        raise _unauthorized("Authorization header missing")

    try:
        claims = jwt_service.verify_token(credentials.credentials)
        user_id = UUID(claims.sub)
    except jwt.ExpiredSignatureError as e:
        LOGGER.warning(f"Expired token: {e}")
        raise _unauthorized("Authentication token expired") from e
    except (jwt.InvalidTokenError, ValueError) as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise _unauthorized("Invalid authentication token") from e

    user = await UserRepository(db_session).get_by_id(user_id)
    if user is None:
        LOGGER.warning(f"Token subject {user_id} does not match any user")
        raise _unauthorized("User not found")

    LOGGER.debug(f"Authenticated user: {user.id} ({user.email})")
    return CurrentUser(id=user.id, email=user.email, name=user.name)

"""JWT issuing and verification for API access tokens."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from pydantic import BaseModel

from policy_assistant.core.config import AuthSettings
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class JWTClaims(BaseModel):
    """Decoded access token claims."""

    sub: str  # User ID
    email: str
    exp: int  # Expiry timestamp
    iat: int  # Issued at timestamp


class JWTService:
    """Issues and verifies HS256 access tokens."""

    def __init__(self, auth_settings: AuthSettings):
        self.secret = auth_settings.jwt_secret
        self.algorithm = auth_settings.jwt_algorithm
        self.expires_in = timedelta(minutes=auth_settings.jwt_expires_minutes)

    def issue_token(self, user_id: UUID, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode an access token.

        Raises:
            jwt.InvalidTokenError: If the token is malformed, tampered with or expired
        """
        payload = jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
        return JWTClaims(**payload)

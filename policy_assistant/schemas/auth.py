"""Authentication request and response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from policy_assistant.schemas.common import CamelModel


class RegisterRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Account password")
    name: str = Field(..., min_length=1, max_length=200, description="Display name")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserProfile(CamelModel):
    id: UUID
    email: str
    name: str
    created_at: datetime


class CurrentUser(BaseModel):
    """Authenticated caller resolved from the bearer token."""

    id: UUID
    email: str
    name: str

"""
User Pydantic schemas.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from county_portal.core.security import meets_password_policy
from county_portal.utils.time import as_utc


class UserRegister(BaseModel):
    """Schema for an admin creating a new account."""

    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str
    role: Literal["admin", "county_user"]
    county_id: Optional[UUID] = None

    @field_validator("username")
    @classmethod
    def _username(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Username must be at least 3 characters")
        return value

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        if not meets_password_policy(value):
            raise ValueError(
                "Password must be at least 8 characters and contain an uppercase letter, "
                "a lowercase letter, a number, and a special character (@$!%*?&)"
            )
        return value


class UserRead(BaseModel):
    """Schema for reading user data (API response)."""

    id: UUID
    username: str
    email: str
    role: str
    county_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class UserCreated(BaseModel):
    message: str
    user: UserRead


class LoginRequest(BaseModel):
    """Schema for login request."""

    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Schema for login response."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead

"""
County Pydantic schemas.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from county_portal.schemas.base import PortalRead


class CountyCreate(BaseModel):
    """Schema for creating a county."""

    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    description: str = ""
    email: Optional[EmailStr] = None

    @field_validator("name", "code")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class CountyUpdate(BaseModel):
    """Schema for updating a county. Only provided fields change."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator("name", "code")
    @classmethod
    def _strip_optional(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class CountyRead(PortalRead):
    name: str
    code: str
    description: str
    email: str


class CountySummary(BaseModel):
    """Compact county embedded in task responses."""

    id: UUID
    name: str
    code: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class TaskStats(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class CountyWithStats(CountyRead):
    task_stats: TaskStats


class ProvisionedAccount(BaseModel):
    """Credentials of the county user created alongside a county."""

    user_id: UUID
    username: str
    email: str
    initial_password: str


class CountyCreated(CountyRead):
    provisioned_user: Optional[ProvisionedAccount] = None

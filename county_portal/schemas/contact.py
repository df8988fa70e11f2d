"""
County contact Pydantic schemas.
"""

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, field_validator

from county_portal.utils.time import as_utc


class ContactEntry(BaseModel):
    """One role in a county's contact sheet."""

    role: str
    name: str = ""
    email: str = ""
    phone: str = ""

    @field_validator("role")
    @classmethod
    def _role(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Role is required")
        return value

    @field_validator("name", "phone")
    @classmethod
    def _trim(cls, value: str) -> str:
        return (value or "").strip()

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return (value or "").strip().lower()


class ContactsUpdate(BaseModel):
    contacts: List[ContactEntry]


class ContactsRead(BaseModel):
    id: UUID
    county_id: UUID
    contacts: List[ContactEntry]
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

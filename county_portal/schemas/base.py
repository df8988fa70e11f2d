"""
Base Pydantic schemas with common fields.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from county_portal.utils.time import as_utc


class PortalRead(BaseModel):
    """
    Base schema for reading persisted records.

    Timestamps are always returned as UTC, including ones SQLite hands back
    without tzinfo.
    """

    id: UUID
    created_at: datetime
    updated_at: datetime

    # This tells Pydantic to work with SQLAlchemy models
    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class MessageResponse(BaseModel):
    message: str

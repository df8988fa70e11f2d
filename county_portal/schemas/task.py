"""
Task Pydantic schemas.
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from county_portal.schemas.base import PortalRead
from county_portal.schemas.county import CountySummary
from county_portal.utils.time import as_utc

StatusValue = Literal["pending", "in_progress", "completed"]
PriorityValue = Literal["low", "medium", "high"]
NotificationTypeValue = Literal["deadline", "reminder", "task_assigned", "task_completed"]


def _clean_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    return value


class TaskBase(BaseModel):
    title: str = Field(..., max_length=500)
    description: str = ""
    status: StatusValue = "pending"
    priority: PriorityValue = "medium"
    deadline: datetime

    @field_validator("title")
    @classmethod
    def _title(cls, value: str) -> str:
        return _clean_title(value)

    @field_validator("deadline")
    @classmethod
    def _deadline_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class TaskCreate(TaskBase):
    """Schema for assigning a task to one county."""

    county_id: UUID


class TaskBulkCreate(TaskBase):
    """Schema for assigning the same task to several counties at once."""

    county_ids: List[UUID] = Field(..., min_length=1)


class TaskUpdate(BaseModel):
    """Schema for updating a task. Only provided fields change."""

    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    status: Optional[StatusValue] = None
    priority: Optional[PriorityValue] = None
    deadline: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _title(cls, value: Optional[str]) -> Optional[str]:
        return _clean_title(value)

    @field_validator("deadline")
    @classmethod
    def _deadline_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class TaskFilters(BaseModel):
    """Query filters accepted by the task list endpoint."""

    county_id: Optional[UUID] = None
    status: Optional[StatusValue] = None
    priority: Optional[PriorityValue] = None
    deadline_from: Optional[datetime] = None
    deadline_to: Optional[datetime] = None
    assigned_from: Optional[datetime] = None
    assigned_to: Optional[datetime] = None
    search: Optional[str] = None

    @field_validator("deadline_from", "deadline_to", "assigned_from", "assigned_to")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class ReminderRead(BaseModel):
    """
    One reminder history entry.

    origin is "system" for scheduler sends and "user" for manual sends, in
    which case sent_by names the admin.
    """

    sent_at: datetime
    origin: Literal["system", "user"] = Field(validation_alias="origin_kind")
    sent_by: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("sent_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class StoredFileRead(BaseModel):
    original_name: str
    storage_key: str
    uploaded_at: Optional[datetime] = None
    uploaded_by: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class TaskRead(PortalRead):
    title: str
    description: str
    county_id: UUID
    county: Optional[CountySummary] = None
    status: StatusValue
    priority: PriorityValue
    deadline: datetime
    assigned_by: Optional[UUID] = None
    reminders: List[ReminderRead] = []
    form_file: Optional[StoredFileRead] = None
    filled_form_file: Optional[StoredFileRead] = None

    @field_validator("deadline")
    @classmethod
    def _deadline_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class BulkTaskResult(BaseModel):
    message: str
    count: int
    tasks: List[TaskRead]


class TaskActionResult(BaseModel):
    """Response for reminder and upload actions: a message plus the task."""

    message: str
    task: TaskRead


class FileDownload(BaseModel):
    download_url: str
    file_name: str

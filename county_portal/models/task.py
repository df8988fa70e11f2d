"""
Task model.

A compliance task assigned to one county, with an append-only reminder
history and up to two attached files (the admin's form and the county's
filled-in copy).
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from county_portal.db.base import Base
from county_portal.models.base_model import TimestampedModel
from county_portal.models.county import County
from county_portal.utils.time import as_utc


class TaskStatus:
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    ALL = [PENDING, IN_PROGRESS, COMPLETED]


class TaskPriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    ALL = [LOW, MEDIUM, HIGH]


@dataclass(frozen=True)
class SystemOrigin:
    """Reminder sent by the scheduler."""

    kind: str = "system"


@dataclass(frozen=True)
class UserOrigin:
    """Reminder triggered manually by an admin."""

    user_id: uuid.UUID
    kind: str = "user"


ReminderOrigin = Union[SystemOrigin, UserOrigin]


@dataclass(frozen=True)
class StoredFile:
    original_name: str
    storage_key: str
    uploaded_at: Optional[datetime]
    uploaded_by: Optional[uuid.UUID] = None


class TaskReminder(Base):
    """
    One entry in a task's reminder history.

    Rows are only ever inserted; the history is never edited or trimmed.
    """

    __tablename__ = "task_reminder"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("task.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # "system" or "user"; sent_by is set only for "user"
    origin_kind: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="system",
    )

    sent_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        nullable=True,
    )

    @classmethod
    def record(cls, sent_at: datetime, origin: ReminderOrigin) -> "TaskReminder":
        if isinstance(origin, UserOrigin):
            return cls(sent_at=sent_at, origin_kind=origin.kind, sent_by=origin.user_id)
        return cls(sent_at=sent_at, origin_kind=origin.kind, sent_by=None)

    @property
    def origin(self) -> ReminderOrigin:
        if self.origin_kind == "user" and self.sent_by is not None:
            return UserOrigin(user_id=self.sent_by)
        return SystemOrigin()


class Task(TimestampedModel):
    """
    Task table - compliance work assigned to a county.

    created_at doubles as the "assigned date" used by list filters.
    """

    __tablename__ = "task"

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )

    county_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("county.id", ondelete="CASCADE"),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=TaskStatus.PENDING,
    )

    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )

    deadline: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    assigned_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("user_account.id", ondelete="SET NULL"),
        nullable=True,
    )

    form_original_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    form_storage_key: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    form_uploaded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    filled_form_original_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    filled_form_storage_key: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    filled_form_uploaded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    filled_form_uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    county: Mapped[County] = relationship(
        "County",
        lazy="selectin",
    )

    reminders: Mapped[List[TaskReminder]] = relationship(
        "TaskReminder",
        lazy="selectin",
        order_by=TaskReminder.sent_at,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_task_county_status", "county_id", "status"),
        Index("ix_task_county_deadline", "county_id", "deadline"),
        Index("ix_task_status_deadline", "status", "deadline"),
    )

    @property
    def form_file(self) -> Optional[StoredFile]:
        if not self.form_storage_key:
            return None
        return StoredFile(
            original_name=self.form_original_name or "",
            storage_key=self.form_storage_key,
            uploaded_at=as_utc(self.form_uploaded_at),
        )

    @property
    def filled_form_file(self) -> Optional[StoredFile]:
        if not self.filled_form_storage_key:
            return None
        return StoredFile(
            original_name=self.filled_form_original_name or "",
            storage_key=self.filled_form_storage_key,
            uploaded_at=as_utc(self.filled_form_uploaded_at),
            uploaded_by=self.filled_form_uploaded_by,
        )

    def last_reminder_at(self) -> Optional[datetime]:
        if not self.reminders:
            return None
        return max(as_utc(r.sent_at) for r in self.reminders)

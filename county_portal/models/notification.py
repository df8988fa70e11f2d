"""
Notification model.

Per-user alerts created by system actions. Only the read flag changes
after creation.
"""

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from county_portal.models.base_model import TimestampedModel


class NotificationType:
    DEADLINE = "deadline"
    REMINDER = "reminder"
    TASK_ASSIGNED = "task_assigned"
    TASK_COMPLETED = "task_completed"

    ALL = [DEADLINE, REMINDER, TASK_ASSIGNED, TASK_COMPLETED]


class Notification(TimestampedModel):
    """Notification table - one alert for one recipient."""

    __tablename__ = "notification"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )

    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    task_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("task.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    __table_args__ = (
        Index("ix_notification_user_read", "user_id", "read"),
        Index("ix_notification_user_created", "user_id", "created_at"),
    )

"""
Notification Pydantic schemas.
"""

from typing import Optional
from uuid import UUID

from county_portal.schemas.base import PortalRead
from county_portal.schemas.task import NotificationTypeValue


class NotificationRead(PortalRead):
    user_id: UUID
    type: NotificationTypeValue
    title: str
    message: str
    task_id: Optional[UUID] = None
    read: bool

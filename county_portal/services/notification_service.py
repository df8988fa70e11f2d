"""
Notification business logic service.
"""

from datetime import timedelta
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.permissions import is_admin, scoped_county_id
from county_portal.errors import AccessDenied, NotFound
from county_portal.models.notification import Notification
from county_portal.models.task import Task
from county_portal.models.user import User
from county_portal.repositories.notification_repository import NotificationRepository
from county_portal.repositories.task_repository import TaskRepository
from county_portal.utils.time import utc_now

UPCOMING_WINDOW = timedelta(days=7)
UPCOMING_LIMIT = 10
RECENT_LIMIT = 50


class NotificationService:
    """Service for per-user notifications and upcoming deadlines."""

    def __init__(self, db: AsyncSession):
        self.repository = NotificationRepository(db)
        self.tasks = TaskRepository(db)

    async def list_for_user(self, user: User) -> List[Notification]:
        return await self.repository.list_for_user(user.id, limit=RECENT_LIMIT)

    async def upcoming_deadlines(self, user: User) -> List[Task]:
        """Open tasks due within the next seven days, soonest first."""
        if not is_admin(user) and user.county_id is None:
            return []
        now = utc_now()
        return await self.tasks.upcoming(
            now,
            now + UPCOMING_WINDOW,
            scope_county_id=scoped_county_id(user),
            limit=UPCOMING_LIMIT,
        )

    async def mark_read(self, user: User, notification_id: UUID) -> Notification:
        notification = await self.repository.get_by_id(notification_id)
        if notification is None:
            raise NotFound("Notification not found")
        if str(notification.user_id) != str(user.id):
            raise AccessDenied("Access denied")
        return await self.repository.mark_read(notification)

    async def mark_all_read(self, user: User) -> int:
        return await self.repository.mark_all_read(user.id)

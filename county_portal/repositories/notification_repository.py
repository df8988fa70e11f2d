"""
Notification repository - database operations for Notification.
"""

from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.models.notification import Notification


class NotificationRepository:
    """Repository for Notification database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_many(
        self,
        user_ids: Sequence[UUID],
        type: str,
        title: str,
        message: str,
        task_id: Optional[UUID] = None,
    ) -> List[Notification]:
        """Create the same notification for several recipients."""
        notifications = [
            Notification(user_id=user_id, type=type, title=title, message=message, task_id=task_id)
            for user_id in user_ids
        ]
        self.db.add_all(notifications)
        await self.db.flush()
        return notifications

    async def create(
        self,
        user_id: UUID,
        type: str,
        title: str,
        message: str,
        task_id: Optional[UUID] = None,
    ) -> Notification:
        created = await self.create_many([user_id], type, title, message, task_id)
        return created[0]

    async def list_for_user(self, user_id: UUID, limit: int = 50) -> List[Notification]:
        """Most recent notifications for a user, newest first."""
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        result = await self.db.execute(select(Notification).where(Notification.id == notification_id))
        return result.scalar_one_or_none()

    async def mark_read(self, notification: Notification) -> Notification:
        notification.read = True
        await self.db.flush()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        return result.rowcount or 0

    async def delete_for_user(self, user_id: UUID) -> None:
        await self.db.execute(delete(Notification).where(Notification.user_id == user_id))

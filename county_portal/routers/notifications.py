"""
Notification router.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.dependencies import get_current_user, get_db
from county_portal.models.user import User
from county_portal.schemas.base import MessageResponse
from county_portal.schemas.notification import NotificationRead
from county_portal.schemas.task import TaskRead
from county_portal.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The current user's 50 most recent notifications, newest first."""
    return await NotificationService(db).list_for_user(user)


@router.get("/upcoming", response_model=List[TaskRead])
async def upcoming_deadlines(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Up to 10 open tasks due in the next 7 days."""
    return await NotificationService(db).upcoming_deadlines(user)


@router.put("/read-all", response_model=MessageResponse)
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).mark_all_read(user)
    await db.commit()
    return MessageResponse(message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_read(user, notification_id)
    await db.commit()
    return notification

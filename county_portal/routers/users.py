"""
User management router (admin only).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.dependencies import get_db, require_admin
from county_portal.models.user import User
from county_portal.schemas.base import MessageResponse
from county_portal.schemas.user import UserRead
from county_portal.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserRead])
async def list_users(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).list_users(admin)


@router.get("/admins", response_model=List[UserRead])
async def list_admins(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).list_admins(admin)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).get_user(admin, user_id)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete an account. Admins cannot delete themselves."""
    await UserService(db).delete_user(admin, user_id)
    await db.commit()
    return MessageResponse(message="User deleted successfully")

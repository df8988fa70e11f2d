"""
User management service (admin only).
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.permissions import Roles, ensure_admin
from county_portal.errors import Conflict, NotFound, ValidationFailed
from county_portal.models.user import User
from county_portal.repositories.county_repository import CountyRepository
from county_portal.repositories.notification_repository import NotificationRepository
from county_portal.repositories.task_repository import TaskRepository
from county_portal.repositories.user_repository import UserRepository
from county_portal.schemas.user import UserRegister

logger = logging.getLogger(__name__)


class UserService:
    """Service for creating, listing and deleting accounts."""

    def __init__(self, db: AsyncSession):
        self.repository = UserRepository(db)
        self.counties = CountyRepository(db)
        self.tasks = TaskRepository(db)
        self.notifications = NotificationRepository(db)

    async def register(self, admin: User, data: UserRegister) -> User:
        """
        Create an account on behalf of an admin. No token is issued.

        County users must reference an existing county; admins never carry one.
        """
        ensure_admin(admin, "create users")
        if await self.repository.find_by_username_or_email(data.username, data.email) is not None:
            raise Conflict("User with this email or username already exists")

        if data.role == Roles.COUNTY_USER:
            if data.county_id is None:
                raise ValidationFailed("County ID is required for county users")
            if await self.counties.get_by_id(data.county_id) is None:
                raise NotFound("County not found")

        user = await self.repository.create(
            username=data.username,
            email=data.email,
            password=data.password,
            role=data.role,
            county_id=data.county_id,
        )
        logger.info("Admin %s created user: %s (%s) with role: %s", admin.username, user.username, user.email, user.role)
        return user

    async def list_users(self, admin: User) -> List[User]:
        ensure_admin(admin, "list users")
        return await self.repository.list()

    async def list_admins(self, admin: User) -> List[User]:
        ensure_admin(admin, "list users")
        return await self.repository.list(role=Roles.ADMIN)

    async def get_user(self, admin: User, user_id: UUID) -> User:
        ensure_admin(admin, "view users")
        user = await self.repository.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def delete_user(self, admin: User, user_id: UUID) -> None:
        """Delete an account along with its notifications. Admins cannot delete themselves."""
        user = await self.get_user(admin, user_id)
        if str(user.id) == str(admin.id):
            raise ValidationFailed("Cannot delete your own account")

        await self.notifications.delete_for_user(user.id)
        await self.tasks.clear_assigner(user.id)
        await self.repository.delete(user.id)
        logger.info("Admin %s deleted user: %s (%s)", admin.username, user.username, user.email)

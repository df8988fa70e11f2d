"""
User repository - database operations for User.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.permissions import Roles
from county_portal.core.security import hash_password
from county_portal.models.user import User


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive)."""
        if not email or not email.strip():
            return None
        email_clean = email.strip().lower()
        result = await self.db.execute(select(User).where(func.lower(User.email) == email_clean))
        return result.scalar_one_or_none()

    async def find_by_username_or_email(self, username: str, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .where(or_(User.username == username, func.lower(User.email) == email.strip().lower()))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        username: str,
        email: str,
        password: str,
        role: str,
        county_id: Optional[UUID] = None,
    ) -> User:
        """Create a new user with a bcrypt-hashed password."""
        user = User(
            username=username,
            email=email.strip().lower(),
            hashed_password=hash_password(password),
            role=role,
            county_id=None if role == Roles.ADMIN else county_id,
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def list(self, role: Optional[str] = None) -> List[User]:
        """List users, newest first."""
        query = select(User)
        if role is not None:
            query = query.where(User.role == role)
        result = await self.db.execute(query.order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def list_county_users(self, county_id: UUID) -> List[User]:
        """County users that belong to one county."""
        result = await self.db.execute(
            select(User).where(User.county_id == county_id, User.role == Roles.COUNTY_USER)
        )
        return list(result.scalars().all())

    async def detach_from_county(self, county_id: UUID) -> int:
        """Clear county_id on users of a county that is being deleted."""
        result = await self.db.execute(
            update(User).where(User.county_id == county_id).values(county_id=None)
        )
        return result.rowcount or 0

    async def delete(self, user_id: UUID) -> None:
        await self.db.execute(delete(User).where(User.id == user_id))

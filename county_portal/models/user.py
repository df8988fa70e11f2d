"""
User model for authentication and authorization.
"""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from county_portal.models.base_model import TimestampedModel


class User(TimestampedModel):
    """
    User table - admins and county-scoped users.

    county_id is required for county users and null for admins.
    """

    __tablename__ = "user_account"

    username: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="county_user",
    )

    # Users survive county deletion; the reference is cleared instead
    county_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("county.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

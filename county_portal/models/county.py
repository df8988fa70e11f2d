"""
County model.

A county owns its tasks and its contact document.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from county_portal.models.base_model import TimestampedModel


class County(TimestampedModel):
    """County table - the unit of ownership for tasks and contacts."""

    __tablename__ = "county"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )

    # Reminder and assignment emails go here; empty means "use the fallback"
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )

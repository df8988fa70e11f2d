"""Initial county portal schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "county",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_county_name"),
        sa.UniqueConstraint("code", name="uq_county_code"),
    )

    op.create_table(
        "user_account",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="county_user"),
        sa.Column("county_id", sa.Uuid(), sa.ForeignKey("county.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("username", name="uq_user_account_username"),
        sa.UniqueConstraint("email", name="uq_user_account_email"),
    )
    op.create_index("ix_user_account_county_id", "user_account", ["county_id"])

    op.create_table(
        "task",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("county_id", sa.Uuid(), sa.ForeignKey("county.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="pending"),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("assigned_by", sa.Uuid(), sa.ForeignKey("user_account.id", ondelete="SET NULL"), nullable=True),
        sa.Column("form_original_name", sa.String(length=500), nullable=True),
        sa.Column("form_storage_key", sa.String(length=1024), nullable=True),
        sa.Column("form_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("filled_form_original_name", sa.String(length=500), nullable=True),
        sa.Column("filled_form_storage_key", sa.String(length=1024), nullable=True),
        sa.Column("filled_form_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("filled_form_uploaded_by", sa.Uuid(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_task_county_status", "task", ["county_id", "status"])
    op.create_index("ix_task_county_deadline", "task", ["county_id", "deadline"])
    op.create_index("ix_task_status_deadline", "task", ["status", "deadline"])

    op.create_table(
        "task_reminder",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("task_id", sa.Uuid(), sa.ForeignKey("task.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("origin_kind", sa.String(length=20), nullable=False, server_default="system"),
        sa.Column("sent_by", sa.Uuid(), nullable=True),
    )
    op.create_index("ix_task_reminder_task_id", "task_reminder", ["task_id"])

    op.create_table(
        "notification",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("task_id", sa.Uuid(), sa.ForeignKey("task.id", ondelete="CASCADE"), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_notification_task_id", "notification", ["task_id"])
    op.create_index("ix_notification_user_read", "notification", ["user_id", "read"])
    op.create_index("ix_notification_user_created", "notification", ["user_id", "created_at"])

    op.create_table(
        "county_contacts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("county_id", sa.Uuid(), sa.ForeignKey("county.id", ondelete="CASCADE"), nullable=False),
        sa.Column("entries", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("county_id", name="uq_county_contacts_county_id"),
    )


def downgrade() -> None:
    op.drop_table("county_contacts")
    op.drop_index("ix_notification_user_created", table_name="notification")
    op.drop_index("ix_notification_user_read", table_name="notification")
    op.drop_index("ix_notification_task_id", table_name="notification")
    op.drop_table("notification")
    op.drop_index("ix_task_reminder_task_id", table_name="task_reminder")
    op.drop_table("task_reminder")
    op.drop_index("ix_task_status_deadline", table_name="task")
    op.drop_index("ix_task_county_deadline", table_name="task")
    op.drop_index("ix_task_county_status", table_name="task")
    op.drop_table("task")
    op.drop_index("ix_user_account_county_id", table_name="user_account")
    op.drop_table("user_account")
    op.drop_table("county")

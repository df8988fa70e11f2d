"""
Task repository - database operations for Task and its reminder history.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.models.county import County
from county_portal.models.notification import Notification
from county_portal.models.task import ReminderOrigin, Task, TaskReminder, TaskStatus
from county_portal.schemas.task import TaskFilters


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        filters: TaskFilters,
        scope_county_id: Optional[UUID] = None,
    ) -> List[Task]:
        """
        List tasks with filters, soonest deadline first.

        scope_county_id restricts the result to one county regardless of the
        county_id filter; it is how county users are kept to their own tasks.
        """
        query = select(Task)

        if scope_county_id is not None:
            query = query.where(Task.county_id == scope_county_id)
        if filters.county_id is not None:
            query = query.where(Task.county_id == filters.county_id)
        if filters.status is not None:
            query = query.where(Task.status == filters.status)
        if filters.priority is not None:
            query = query.where(Task.priority == filters.priority)
        if filters.deadline_from is not None:
            query = query.where(Task.deadline >= filters.deadline_from)
        if filters.deadline_to is not None:
            query = query.where(Task.deadline <= filters.deadline_to)
        if filters.assigned_from is not None:
            query = query.where(Task.created_at >= filters.assigned_from)
        if filters.assigned_to is not None:
            query = query.where(Task.created_at <= filters.assigned_to)
        if filters.search:
            pattern = _like_pattern(filters.search.strip())
            query = query.where(
                or_(
                    Task.title.ilike(pattern, escape="\\"),
                    Task.description.ilike(pattern, escape="\\"),
                )
            )

        query = query.order_by(Task.deadline.asc(), Task.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_id(self, task_id: UUID, reload: bool = False) -> Optional[Task]:
        """
        Get a task by ID.

        reload=True refreshes an already-loaded instance, including its county
        and reminders, after it was changed in this session.
        """
        query = select(Task).where(Task.id == task_id)
        if reload:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(
        self,
        county: County,
        title: str,
        description: str,
        status: str,
        priority: str,
        deadline: datetime,
        assigned_by: Optional[UUID],
    ) -> Task:
        """Create a new task for a county."""
        task = Task(
            county=county,
            title=title,
            description=description or "",
            status=status,
            priority=priority,
            deadline=deadline,
            assigned_by=assigned_by,
            reminders=[],
        )
        self.db.add(task)
        await self.db.flush()
        return task

    async def update(self, task: Task, fields: Dict[str, object]) -> Task:
        """Apply field changes to a task."""
        for field, value in fields.items():
            setattr(task, field, value)
        await self.db.flush()
        return task

    async def find_due_for_reminder(self, now: datetime, window_end: datetime) -> List[Task]:
        """Open tasks whose deadline falls inside [now, window_end]."""
        result = await self.db.execute(
            select(Task)
            .where(
                Task.status != TaskStatus.COMPLETED,
                Task.deadline >= now,
                Task.deadline <= window_end,
            )
            .order_by(Task.deadline.asc())
        )
        return list(result.scalars().all())

    async def upcoming(
        self,
        now: datetime,
        until: datetime,
        scope_county_id: Optional[UUID] = None,
        limit: int = 10,
    ) -> List[Task]:
        """Open tasks due between now and until, soonest first."""
        query = select(Task).where(
            Task.status != TaskStatus.COMPLETED,
            Task.deadline >= now,
            Task.deadline <= until,
        )
        if scope_county_id is not None:
            query = query.where(Task.county_id == scope_county_id)
        result = await self.db.execute(query.order_by(Task.deadline.asc()).limit(limit))
        return list(result.scalars().all())

    async def add_reminder(self, task: Task, sent_at: datetime, origin: ReminderOrigin) -> TaskReminder:
        """Append one entry to the task's reminder history."""
        reminder = TaskReminder.record(sent_at, origin)
        task.reminders.append(reminder)
        await self.db.flush()
        return reminder

    async def ids_for_county(self, county_id: UUID) -> List[UUID]:
        result = await self.db.execute(select(Task.id).where(Task.county_id == county_id))
        return list(result.scalars().all())

    async def delete_many(self, task_ids: Sequence[UUID]) -> int:
        """
        Delete tasks together with their reminders and notifications.

        Returns the number of tasks removed.
        """
        ids = list(task_ids)
        if not ids:
            return 0
        await self.db.execute(delete(Notification).where(Notification.task_id.in_(ids)))
        await self.db.execute(delete(TaskReminder).where(TaskReminder.task_id.in_(ids)))
        result = await self.db.execute(delete(Task).where(Task.id.in_(ids)))
        return result.rowcount or 0

    async def clear_assigner(self, user_id: UUID) -> None:
        """Detach tasks from an admin account that is being deleted."""
        await self.db.execute(update(Task).where(Task.assigned_by == user_id).values(assigned_by=None))

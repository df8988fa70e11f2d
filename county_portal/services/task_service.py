"""
Task business logic service.

Covers assignment (single and bulk), updates, deletion, manual reminders and
the form / filled-form attachment lifecycle. Emails and notifications that
follow a successful write are best-effort and come back as side-effect
outcomes next to the task.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import quote
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.permissions import ensure_admin, ensure_county_access, is_admin, scoped_county_id
from county_portal.errors import NotFound, UploadError
from county_portal.models.county import County
from county_portal.models.notification import NotificationType
from county_portal.models.task import Task, TaskStatus, UserOrigin
from county_portal.models.user import User
from county_portal.repositories.county_repository import CountyRepository
from county_portal.repositories.notification_repository import NotificationRepository
from county_portal.repositories.task_repository import TaskRepository
from county_portal.repositories.user_repository import UserRepository
from county_portal.schemas.task import TaskBulkCreate, TaskCreate, TaskFilters, TaskUpdate
from county_portal.services.email_service import EmailDispatcher
from county_portal.services.side_effects import OperationResult, SideEffectOutcome, run_side_effect
from county_portal.services.storage_service import (
    FILLED_FORM_FOLDER,
    FORM_FOLDER,
    FileStorage,
    build_storage_key,
    validate_upload,
)
from county_portal.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """An incoming upload, already read into memory."""

    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


class TaskService:
    """Service for task business logic."""

    def __init__(
        self,
        db: AsyncSession,
        email_dispatcher: Optional[EmailDispatcher] = None,
        storage: Optional[FileStorage] = None,
        fallback_email: str = "reminders@county-portal.local",
        upload_max_bytes: int = 10 * 1024 * 1024,
        signed_url_expires_seconds: int = 3600,
    ):
        self.db = db
        self.repository = TaskRepository(db)
        self.counties = CountyRepository(db)
        self.users = UserRepository(db)
        self.notifications = NotificationRepository(db)
        self.email_dispatcher = email_dispatcher
        self.storage = storage
        self.fallback_email = fallback_email
        self.upload_max_bytes = upload_max_bytes
        self.signed_url_expires_seconds = signed_url_expires_seconds

    async def list_tasks(self, user: User, filters: TaskFilters) -> List[Task]:
        """List tasks visible to user; county users without a county see nothing."""
        if not is_admin(user) and user.county_id is None:
            return []
        return await self.repository.list(filters, scope_county_id=scoped_county_id(user))

    async def get_task(self, user: User, task_id: UUID) -> Task:
        """Load a task, 404 when missing, then 403 when it belongs to another county."""
        task = await self.repository.get_by_id(task_id)
        if task is None:
            raise NotFound("Task not found")
        ensure_county_access(user, task.county_id)
        return task

    async def create_task(self, user: User, data: TaskCreate) -> OperationResult[Task]:
        ensure_admin(user, "create tasks")
        county = await self.counties.get_by_id(data.county_id)
        if county is None:
            raise NotFound("County not found")

        task = await self._persist(user, county, data)
        outcomes: List[SideEffectOutcome] = []
        await self._announce_assignment(user, task, county, outcomes)
        return OperationResult(await self.repository.get_by_id(task.id, reload=True), outcomes)

    async def create_bulk(self, user: User, data: TaskBulkCreate) -> OperationResult[List[Task]]:
        """
        Assign the same task to every county in data.county_ids.

        All counties are checked before anything is written, so a single
        missing county creates no tasks at all.
        """
        ensure_admin(user, "create tasks")
        county_ids = list(dict.fromkeys(data.county_ids))
        counties = {county.id: county for county in await self.counties.get_by_ids(county_ids)}
        missing = [str(county_id) for county_id in county_ids if county_id not in counties]
        if missing:
            raise NotFound("One or more counties not found", details={"missing_county_ids": missing})

        tasks = [await self._persist(user, counties[county_id], data) for county_id in county_ids]

        outcomes: List[SideEffectOutcome] = []
        for task in tasks:
            await self._announce_assignment(user, task, counties[task.county_id], outcomes)

        reloaded = [await self.repository.get_by_id(task.id, reload=True) for task in tasks]
        logger.info("Bulk-created %d tasks for %s", len(reloaded), user.username)
        return OperationResult(reloaded, outcomes)

    async def update_task(self, user: User, task_id: UUID, data: TaskUpdate) -> OperationResult[Task]:
        """Apply only the provided fields. Completing a task notifies its assigner."""
        task = await self.get_task(user, task_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        was_completed = task.status == TaskStatus.COMPLETED

        await self.repository.update(task, fields)

        outcomes: List[SideEffectOutcome] = []
        if not was_completed and task.status == TaskStatus.COMPLETED and task.assigned_by is not None:
            county_name = task.county.name if task.county else "County"
            assigner_id = task.assigned_by
            await run_side_effect(
                outcomes,
                "task_completed_notification",
                lambda: self._notify(
                    [assigner_id],
                    NotificationType.TASK_COMPLETED,
                    "Task Completed",
                    f"{county_name} completed task: {task.title}",
                    task.id,
                ),
            )

        return OperationResult(await self.repository.get_by_id(task.id, reload=True), outcomes)

    async def delete_task(self, user: User, task_id: UUID) -> None:
        ensure_admin(user, "delete tasks")
        task = await self.repository.get_by_id(task_id)
        if task is None:
            raise NotFound("Task not found")
        await self.repository.delete_many([task.id])
        logger.info("Task %s deleted by %s", task_id, user.username)

    async def send_manual_reminder(self, user: User, task_id: UUID) -> OperationResult[Task]:
        """
        Send a reminder for one task right now.

        No dedup window applies. The reminder entry and the admin's
        notification are recorded even when the email fails.
        """
        ensure_admin(user, "send reminders")
        task = await self.repository.get_by_id(task_id)
        if task is None:
            raise NotFound("Task not found")

        county: Optional[County] = task.county
        county_name = county.name if county else "County"
        destination = ((county.email or "").strip() if county else "") or self.fallback_email

        outcomes: List[SideEffectOutcome] = []
        if self.email_dispatcher is not None:
            sent = await run_side_effect(
                outcomes,
                "reminder_email",
                lambda: self.email_dispatcher.send_reminder_email(
                    destination, county_name, task.title, task.deadline
                ),
            )
            if sent:
                logger.info("Reminder email sent successfully to %s", destination)

        await self.repository.add_reminder(task, utc_now(), UserOrigin(user_id=user.id))
        await run_side_effect(
            outcomes,
            "reminder_notification",
            lambda: self._notify(
                [user.id],
                NotificationType.REMINDER,
                "Reminder Sent",
                f"Reminder sent for task: {task.title}",
                task.id,
            ),
        )
        return OperationResult(await self.repository.get_by_id(task.id, reload=True), outcomes)

    async def upload_form(self, user: User, task_id: UUID, upload: UploadedFile) -> OperationResult[Task]:
        """Attach the admin's form, replacing any previous one, and tell the county."""
        ensure_admin(user, "upload forms")
        task = await self.repository.get_by_id(task_id)
        if task is None:
            raise NotFound("Task not found")

        outcomes: List[SideEffectOutcome] = []
        key = await self._store(FORM_FOLDER, upload, user, task.form_storage_key, outcomes)
        await self.repository.update(
            task,
            {
                "form_original_name": upload.filename,
                "form_storage_key": key,
                "form_uploaded_at": utc_now(),
            },
        )

        county = task.county
        if county is not None:
            if county.email and self.email_dispatcher is not None:
                await run_side_effect(
                    outcomes,
                    "form_upload_email",
                    lambda: self.email_dispatcher.send_form_upload_email(
                        county.email, county.name, task.title, upload.filename
                    ),
                )
            county_users = await self.users.list_county_users(county.id)
            if county_users:
                await run_side_effect(
                    outcomes,
                    "form_available_notifications",
                    lambda: self._notify(
                        [member.id for member in county_users],
                        NotificationType.TASK_ASSIGNED,
                        "Form Available",
                        f"Form available for task: {task.title}",
                        task.id,
                    ),
                )

        return OperationResult(await self.repository.get_by_id(task.id, reload=True), outcomes)

    async def upload_filled_form(self, user: User, task_id: UUID, upload: UploadedFile) -> OperationResult[Task]:
        """Attach the county's completed form, replacing any previous one."""
        task = await self.get_task(user, task_id)

        outcomes: List[SideEffectOutcome] = []
        key = await self._store(FILLED_FORM_FOLDER, upload, user, task.filled_form_storage_key, outcomes)
        await self.repository.update(
            task,
            {
                "filled_form_original_name": upload.filename,
                "filled_form_storage_key": key,
                "filled_form_uploaded_at": utc_now(),
                "filled_form_uploaded_by": user.id,
            },
        )
        return OperationResult(await self.repository.get_by_id(task.id, reload=True), outcomes)

    async def form_download(self, user: User, task_id: UUID, filled: bool = False) -> Tuple[str, str]:
        """Return (signed_url, file_name) for the form or filled form of a task."""
        label = "Filled form file" if filled else "Form file"
        task = await self.repository.get_by_id(task_id)
        stored = None
        if task is not None:
            stored = task.filled_form_file if filled else task.form_file
        if stored is None:
            raise NotFound(f"{label} not found")
        ensure_county_access(user, task.county_id)

        url = None
        if self.storage is not None:
            url = await self.storage.signed_url(stored.storage_key, self.signed_url_expires_seconds)
        if not url:
            raise NotFound("File not found")
        return url, stored.original_name or ("filled-form.pdf" if filled else "form.pdf")

    async def _persist(self, user: User, county: County, data) -> Task:
        return await self.repository.create(
            county=county,
            title=data.title,
            description=data.description,
            status=data.status,
            priority=data.priority,
            deadline=data.deadline,
            assigned_by=user.id,
        )

    async def _announce_assignment(
        self,
        user: User,
        task: Task,
        county: County,
        outcomes: List[SideEffectOutcome],
    ) -> None:
        if county.email and self.email_dispatcher is not None:
            sent = await run_side_effect(
                outcomes,
                f"assignment_email:{task.id}",
                lambda: self.email_dispatcher.send_task_assignment_email(
                    county.email, county.name, task.title, task.deadline, user.username
                ),
            )
            if sent:
                logger.info("Task assignment email sent to %s", county.email)

        county_users = await self.users.list_county_users(county.id)
        if county_users:
            await run_side_effect(
                outcomes,
                f"assignment_notifications:{task.id}",
                lambda: self._notify(
                    [member.id for member in county_users],
                    NotificationType.TASK_ASSIGNED,
                    "New Task Assigned",
                    f"New task assigned: {task.title}",
                    task.id,
                ),
            )

    async def _notify(
        self,
        user_ids: List[UUID],
        type: str,
        title: str,
        message: str,
        task_id: Optional[UUID],
    ) -> None:
        # Savepoint: a failed insert must not poison the request session
        async with self.db.begin_nested():
            await self.notifications.create_many(user_ids, type, title, message, task_id)

    async def _store(
        self,
        folder: str,
        upload: UploadedFile,
        user: User,
        previous_key: Optional[str],
        outcomes: List[SideEffectOutcome],
    ) -> str:
        validate_upload(upload.filename, upload.content_type, len(upload.data), self.upload_max_bytes)
        if self.storage is None:
            raise UploadError("File storage is not configured", status_code=500)

        key = build_storage_key(folder, upload.filename)
        await self.storage.put(
            key,
            upload.data,
            upload.content_type or "application/octet-stream",
            {"original_name": quote(upload.filename), "uploaded_by": str(user.id)},
        )
        if previous_key:
            await run_side_effect(outcomes, "delete_previous_file", lambda: self.storage.delete(previous_key))
        return key

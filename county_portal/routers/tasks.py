"""
Task router - API endpoints for tasks, reminders and task files.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.config import Settings
from county_portal.core.dependencies import (
    get_current_user,
    get_db,
    get_email_dispatcher,
    get_file_storage,
    get_settings,
    require_admin,
)
from county_portal.models.user import User
from county_portal.schemas.base import MessageResponse
from county_portal.schemas.task import (
    BulkTaskResult,
    FileDownload,
    PriorityValue,
    StatusValue,
    TaskActionResult,
    TaskBulkCreate,
    TaskCreate,
    TaskFilters,
    TaskRead,
    TaskUpdate,
)
from county_portal.services.email_service import EmailDispatcher
from county_portal.services.storage_service import FileStorage
from county_portal.services.task_service import TaskService, UploadedFile

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
    storage: FileStorage = Depends(get_file_storage),
) -> TaskService:
    return TaskService(
        db,
        email_dispatcher=email_dispatcher,
        storage=storage,
        fallback_email=settings.REMINDER_FALLBACK_EMAIL,
        upload_max_bytes=settings.UPLOAD_MAX_BYTES,
        signed_url_expires_seconds=settings.SIGNED_URL_EXPIRES_SECONDS,
    )


async def _read_upload(file: Optional[UploadFile], max_bytes: int) -> UploadedFile:
    if file is None:
        return UploadedFile(filename=None, content_type=None, data=b"")
    # One byte past the limit is enough to detect oversize uploads
    data = await file.read(max_bytes + 1)
    return UploadedFile(filename=file.filename, content_type=file.content_type, data=data)


@router.get("", response_model=List[TaskRead])
async def list_tasks(
    county_id: Optional[UUID] = None,
    status: Optional[StatusValue] = None,
    priority: Optional[PriorityValue] = None,
    deadline_from: Optional[datetime] = None,
    deadline_to: Optional[datetime] = None,
    assigned_from: Optional[datetime] = None,
    assigned_to: Optional[datetime] = None,
    search: Optional[str] = None,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """
    List tasks with filters.

    Filters: county_id, status, priority, deadline_from/deadline_to,
    assigned_from/assigned_to (creation date) and a case-insensitive search
    over title and description. County users only ever see their own county.
    """
    filters = TaskFilters(
        county_id=county_id,
        status=status,
        priority=priority,
        deadline_from=deadline_from,
        deadline_to=deadline_to,
        assigned_from=assigned_from,
        assigned_to=assigned_to,
        search=search or None,
    )
    return await service.list_tasks(user, filters)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Get a task by ID."""
    return await service.get_task(user, task_id)


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    user: User = Depends(require_admin),
    service: TaskService = Depends(get_task_service),
    db: AsyncSession = Depends(get_db),
):
    """Assign a new task to one county."""
    result = await service.create_task(user, data)
    await db.commit()
    return result.value


@router.post("/bulk", response_model=BulkTaskResult, status_code=status.HTTP_201_CREATED)
async def create_bulk_tasks(
    data: TaskBulkCreate,
    user: User = Depends(require_admin),
    service: TaskService = Depends(get_task_service),
    db: AsyncSession = Depends(get_db),
):
    """Assign the same task to several counties; nothing is created if any county is missing."""
    result = await service.create_bulk(user, data)
    await db.commit()
    tasks = result.value
    return BulkTaskResult(
        message=f"Created {len(tasks)} tasks successfully",
        count=len(tasks),
        tasks=[TaskRead.model_validate(task) for task in tasks],
    )


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    db: AsyncSession = Depends(get_db),
):
    """Update a task. Only the fields present in the body change."""
    result = await service.update_task(user, task_id, data)
    await db.commit()
    return result.value


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: UUID,
    user: User = Depends(require_admin),
    service: TaskService = Depends(get_task_service),
    db: AsyncSession = Depends(get_db),
):
    await service.delete_task(user, task_id)
    await db.commit()
    return MessageResponse(message="Task deleted successfully")


@router.post("/{task_id}/reminder", response_model=TaskActionResult)
async def send_reminder(
    task_id: UUID,
    user: User = Depends(require_admin),
    service: TaskService = Depends(get_task_service),
    db: AsyncSession = Depends(get_db),
):
    """Send a reminder email now. The reminder is recorded even if the email fails."""
    result = await service.send_manual_reminder(user, task_id)
    await db.commit()
    return TaskActionResult(message="Reminder sent successfully", task=TaskRead.model_validate(result.value))


@router.post("/{task_id}/upload-form", response_model=TaskActionResult)
async def upload_form(
    task_id: UUID,
    file: Optional[UploadFile] = File(None),
    user: User = Depends(require_admin),
    service: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    upload = await _read_upload(file, settings.UPLOAD_MAX_BYTES)
    result = await service.upload_form(user, task_id, upload)
    await db.commit()
    return TaskActionResult(message="Form uploaded successfully", task=TaskRead.model_validate(result.value))


@router.post("/{task_id}/upload-filled-form", response_model=TaskActionResult)
async def upload_filled_form(
    task_id: UUID,
    file: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    upload = await _read_upload(file, settings.UPLOAD_MAX_BYTES)
    result = await service.upload_filled_form(user, task_id, upload)
    await db.commit()
    return TaskActionResult(message="Filled form uploaded successfully", task=TaskRead.model_validate(result.value))


@router.get("/{task_id}/download-form", response_model=FileDownload)
async def download_form(
    task_id: UUID,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Signed URL for the task's form, valid for one hour."""
    url, file_name = await service.form_download(user, task_id)
    return FileDownload(download_url=url, file_name=file_name)


@router.get("/{task_id}/download-filled-form", response_model=FileDownload)
async def download_filled_form(
    task_id: UUID,
    user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    url, file_name = await service.form_download(user, task_id, filled=True)
    return FileDownload(download_url=url, file_name=file_name)

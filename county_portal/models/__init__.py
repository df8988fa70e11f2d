"""
Import every model so Base.metadata knows about all tables.
"""

from county_portal.models.contact import CountyContacts, DEFAULT_CONTACT_ROLES
from county_portal.models.county import County
from county_portal.models.notification import Notification, NotificationType
from county_portal.models.task import (
    ReminderOrigin,
    StoredFile,
    SystemOrigin,
    Task,
    TaskPriority,
    TaskReminder,
    TaskStatus,
    UserOrigin,
)
from county_portal.models.user import User

__all__ = [
    "County",
    "CountyContacts",
    "DEFAULT_CONTACT_ROLES",
    "Notification",
    "NotificationType",
    "ReminderOrigin",
    "StoredFile",
    "SystemOrigin",
    "Task",
    "TaskPriority",
    "TaskReminder",
    "TaskStatus",
    "User",
    "UserOrigin",
]

"""
Deadline reminder engine and its in-process scheduler.

ReminderEngine.scan_once() finds open tasks due within the lookahead window
and emails the owning county, at most once per dedup window per task. Every
attempt is recorded in the task's reminder history whether or not the email
went out, so a broken mail server cannot cause a reminder storm.

ReminderScheduler owns the asyncio task that runs the engine immediately and
then on a fixed interval for the lifetime of the application.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from county_portal.db.session import session_scope
from county_portal.models.task import SystemOrigin, Task
from county_portal.repositories.task_repository import TaskRepository
from county_portal.services.email_service import EmailDispatcher
from county_portal.utils.time import as_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ReminderScanReport:
    """Task ids touched by one engine tick."""

    started_at: datetime
    scanned: List[UUID] = field(default_factory=list)
    sent: List[UUID] = field(default_factory=list)
    skipped: List[UUID] = field(default_factory=list)
    failed: List[UUID] = field(default_factory=list)


def recently_reminded(task: Task, now: datetime, dedup_window: timedelta) -> bool:
    """True when any reminder entry is younger than dedup_window."""
    return any(now - as_utc(entry.sent_at) < dedup_window for entry in task.reminders)


def reminder_destination(task: Task, fallback_email: str) -> str:
    """County email when set, else the configured fallback address."""
    county_email = (task.county.email or "").strip() if task.county else ""
    return county_email or fallback_email


class ReminderEngine:
    """Scans for tasks near their deadline and sends at most one reminder per window."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        email_dispatcher: EmailDispatcher,
        lookahead: timedelta = timedelta(days=3),
        dedup_window: timedelta = timedelta(hours=24),
        fallback_email: str = "reminders@county-portal.local",
    ):
        self.session_factory = session_factory
        self.email_dispatcher = email_dispatcher
        self.lookahead = lookahead
        self.dedup_window = dedup_window
        self.fallback_email = fallback_email

    async def scan_once(self, now: Optional[datetime] = None) -> ReminderScanReport:
        now = as_utc(now) if now is not None else utc_now()
        report = ReminderScanReport(started_at=now)

        async with session_scope(self.session_factory) as session:
            due = await TaskRepository(session).find_due_for_reminder(now, now + self.lookahead)
            report.scanned = [task.id for task in due]

        # Each task is emailed and recorded in its own transaction
        for task_id in report.scanned:
            try:
                outcome = await self._remind(task_id, now)
            except Exception:
                logger.exception("Failed to record automatic reminder for task %s", task_id)
                outcome = "failed"
            getattr(report, outcome).append(task_id)

        logger.info(
            "Reminder scan finished: %d due, %d sent, %d skipped, %d failed",
            len(report.scanned),
            len(report.sent),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def _remind(self, task_id: UUID, now: datetime) -> str:
        """Email and record one task. Returns the report bucket it belongs in."""
        async with session_scope(self.session_factory) as session:
            repository = TaskRepository(session)
            task = await repository.get_by_id(task_id)
            if task is None:
                logger.info("Task %s was deleted before its reminder went out", task_id)
                return "skipped"
            if recently_reminded(task, now, self.dedup_window):
                return "skipped"

            county_name = task.county.name if task.county else "County"
            destination = reminder_destination(task, self.fallback_email)
            outcome = "sent"
            try:
                await self.email_dispatcher.send_reminder_email(
                    destination, county_name, task.title, task.deadline
                )
                logger.info("Automatic reminder sent for task %s (%s)", task.title, county_name)
            except Exception:
                outcome = "failed"
                logger.exception("Failed to send automatic reminder for task %s", task.id)

            await repository.add_reminder(task, now, SystemOrigin())
        return outcome


class ReminderScheduler:
    """
    Runs a ReminderEngine once on start and then every interval_seconds.

    Ticks run in a single loop and never overlap. An exception inside a
    tick is logged and the loop keeps going.
    """

    def __init__(self, engine: ReminderEngine, interval_seconds: float = 3600):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="reminder-scheduler")
        logger.info("Automatic reminder scheduler started (every %s seconds)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Automatic reminder scheduler stopped")

    async def run_once(self, now: Optional[datetime] = None) -> Optional[ReminderScanReport]:
        """Run one tick; errors are logged and reported as None."""
        try:
            return await self.engine.scan_once(now)
        except Exception:
            logger.exception("Error in reminder scheduler tick")
            return None

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

"""
Main FastAPI application.

This is the entry point for the API server:

    uvicorn county_portal.main:app
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from county_portal.core.config import Settings, settings as default_settings
from county_portal.core.logging import setup_logging
from county_portal.errors import register_error_handlers
from county_portal.routers import auth, contacts, counties, health, notifications, tasks, users
from county_portal.services.email_service import EmailDispatcher, SmtpEmailDispatcher
from county_portal.services.reminder_service import ReminderEngine, ReminderScheduler
from county_portal.services.storage_service import FileStorage, S3FileStorage

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def build_reminder_scheduler(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    email_dispatcher: EmailDispatcher,
) -> ReminderScheduler:
    engine = ReminderEngine(
        session_factory,
        email_dispatcher,
        lookahead=timedelta(days=settings.REMINDER_LOOKAHEAD_DAYS),
        dedup_window=timedelta(hours=settings.REMINDER_DEDUP_HOURS),
        fallback_email=settings.REMINDER_FALLBACK_EMAIL,
    )
    return ReminderScheduler(engine, interval_seconds=settings.REMINDER_INTERVAL_SECONDS)


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    email_dispatcher: Optional[EmailDispatcher] = None,
    file_storage: Optional[FileStorage] = None,
    start_scheduler: Optional[bool] = None,
) -> FastAPI:
    """
    Build the application.

    Every collaborator can be injected; anything left out is built from
    settings. The reminder scheduler starts with the app unless
    start_scheduler is False or REMINDER_ENABLED is off.
    """
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    if session_factory is None:
        from county_portal.db.session import async_session_maker

        session_factory = async_session_maker
    if email_dispatcher is None:
        email_dispatcher = SmtpEmailDispatcher.from_settings(settings)
    if file_storage is None:
        file_storage = S3FileStorage.from_settings(settings)
    if start_scheduler is None:
        start_scheduler = settings.REMINDER_ENABLED

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the reminder scheduler on startup and stop it on shutdown."""
        logger.info("Starting %s...", settings.APP_NAME)
        if not file_storage.configured:
            logger.warning("AWS S3 configuration missing. File uploads will fail.")
        scheduler = build_reminder_scheduler(settings, session_factory, email_dispatcher)
        app.state.reminder_scheduler = scheduler
        if start_scheduler:
            scheduler.start()

        yield  # The server runs while we're "yielded" here

        await scheduler.stop()
        logger.info("Shutting down %s...", settings.APP_NAME)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Backend API for assigning and tracking county compliance tasks",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.email_dispatcher = email_dispatcher
    app.state.file_storage = file_storage

    register_error_handlers(app)

    # Include routers (API endpoints)
    app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(counties.router, prefix=API_PREFIX)
    app.include_router(tasks.router, prefix=API_PREFIX)
    app.include_router(notifications.router, prefix=API_PREFIX)
    app.include_router(contacts.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)

    return app


app = create_app()

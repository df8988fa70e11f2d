"""Health check router. No authentication."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from county_portal.core.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@lru_cache(maxsize=1)
def alembic_head() -> Optional[str]:
    """Newest migration revision shipped with the code, or None outside a source checkout."""
    ini_path = PROJECT_ROOT / "alembic.ini"
    scripts = PROJECT_ROOT / "alembic"
    if not ini_path.exists() or not scripts.is_dir():
        return None
    config = Config(str(ini_path))
    config.set_main_option("script_location", str(scripts))
    return ScriptDirectory.from_config(config).get_current_head()


async def _database_revision(db: AsyncSession) -> Optional[str]:
    try:
        result = await db.execute(text("SELECT version_num FROM alembic_version"))
    except SQLAlchemyError:
        # Schema built without migrations (tests, fresh dev databases)
        await db.rollback()
        return None
    return result.scalar_one_or_none()


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """Report database reachability, migration state and whether reminders are running."""
    db_ok = True
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database", exc_info=True)
        db_ok = False

    current = await _database_revision(db) if db_ok else None
    head = alembic_head()
    scheduler = getattr(request.app.state, "reminder_scheduler", None)

    return {
        "api_ok": True,
        "db_ok": db_ok,
        "alembic_head_ok": bool(current and head and current == head),
        "alembic_current": current,
        "alembic_head": head,
        "reminder_scheduler_running": bool(scheduler and scheduler.running),
    }

"""Health check router: API, database and migration state."""

import logging
from pathlib import Path
from typing import Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.core.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _load_alembic_head() -> Optional[str]:
    """Newest revision shipped with the code, or None without a migration tree."""
    ini_path = PROJECT_ROOT / "alembic.ini"
    script_location = PROJECT_ROOT / "alembic"
    if not (ini_path.exists() and script_location.exists()):
        return None

    config = Config(str(ini_path))
    config.set_main_option("script_location", str(script_location))
    return ScriptDirectory.from_config(config).get_current_head()


def _safe_alembic_head() -> Optional[str]:
    # A broken revision file must not turn the health check into a 500
    try:
        return _load_alembic_head()
    except Exception:
        logger.exception("Could not read the alembic script directory")
        return None


async def _database_revision(db: AsyncSession) -> tuple:
    """(reachable, applied revision) for the configured database."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return False, None
    try:
        result = await db.execute(text("SELECT version_num FROM alembic_version"))
        return True, result.scalar_one_or_none()
    except SQLAlchemyError:
        return True, None


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Report whether the database is reachable and migrated to head."""
    db_ok, alembic_current = await _database_revision(db)
    alembic_head = _safe_alembic_head()

    return {
        "api_ok": True,
        "db_ok": db_ok,
        "alembic_head_ok": bool(alembic_current and alembic_head and alembic_current == alembic_head),
        "alembic_current": alembic_current,
        "alembic_head": alembic_head,
    }

"""Commit-or-rollback scope used by the services."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.errors import AppError, PersistenceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def unit_of_work(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Commit once when the block succeeds, roll back otherwise.

    Application errors propagate unchanged. Storage errors are logged with
    full detail and re-raised as a generic PersistenceError.
    """
    try:
        yield db
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Storage failure during %s", operation)
        raise PersistenceError() from exc

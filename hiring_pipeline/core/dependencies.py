"""
FastAPI dependencies for the application.
"""

from typing import Optional
from uuid import UUID

from fastapi import Header

from hiring_pipeline.db.session import get_db  # noqa: F401  (re-exported for routers)
from hiring_pipeline.errors import ValidationError
from hiring_pipeline.utils.time import Clock, utc_now


async def get_actor_id(x_user_id: Optional[str] = Header(None)) -> Optional[UUID]:
    """
    Optional id of the user performing the action (X-User-ID header).

    Authentication lives outside this service; the id is only recorded on the
    stage records (assigned_by, reviewed_by, ...).
    """
    if not x_user_id:
        return None
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise ValidationError(
            "X-User-ID header must be a UUID",
            [{"field": "X-User-ID", "message": "must be a UUID"}],
        ) from exc


def get_clock() -> Clock:
    """Time source for deadlines; overridden in tests."""
    return utc_now

"""
Panel business logic service.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.db.unit_of_work import unit_of_work
from hiring_pipeline.errors import NotFoundError, ValidationError
from hiring_pipeline.models.panel import Panel
from hiring_pipeline.repositories.panel_repository import PanelRepository
from hiring_pipeline.schemas.common import SlotTemplateInput, ensure_ordered_slots
from hiring_pipeline.schemas.panel import PanelCreate, PanelUpdate
from hiring_pipeline.services.panel_locks import panel_locks

logger = logging.getLogger(__name__)


class PanelService:
    """Service for panel records and their weekday rules."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = PanelRepository(db)

    async def list_panels(
        self,
        limit: int = 50,
        offset: int = 0,
        is_active: Optional[bool] = None,
    ) -> List[Panel]:
        """List panels with filters."""
        return await self.repository.list(limit=limit, offset=offset, is_active=is_active)

    async def get_panel(self, panel_id: UUID) -> Panel:
        """Get a panel by ID."""
        panel = await self.repository.get_by_id(panel_id)
        if panel is None:
            raise NotFoundError("Panel", panel_id)
        return panel

    async def create_panel(self, data: PanelCreate) -> Panel:
        """Create a new panel."""
        async with unit_of_work(self.db, "create_panel"):
            panel = await self.repository.create(data)
        logger.info("Panel %s created (%s)", panel.id, panel.name)
        return await self.repository.get_by_id(panel.id, refresh=True)

    async def update_panel(self, panel_id: UUID, data: PanelUpdate) -> Panel:
        """Update name, description, members or active flag."""
        async with unit_of_work(self.db, "update_panel"):
            panel = await self.get_panel(panel_id)
            await self.repository.update(panel, data)
        return await self.repository.get_by_id(panel_id, refresh=True)

    async def add_recurring_rule(
        self,
        panel_id: UUID,
        day_of_week: int,
        templates: Sequence[SlotTemplateInput],
    ) -> Panel:
        """
        Set the slot templates for a weekday (0 = Sunday).

        A panel keeps at most one rule per weekday, so an existing rule has its
        templates replaced.
        """
        if not 0 <= day_of_week <= 6:
            raise ValidationError(
                "Day of week must be 0-6 (0=Sunday, 6=Saturday)",
                [{"field": "day_of_week", "message": "must be between 0 and 6"}],
            )
        ensure_ordered_slots(templates)
        async with panel_locks.lock_for(panel_id):
            async with unit_of_work(self.db, "add_recurring_rule"):
                await self.get_panel(panel_id)
                await self.repository.upsert_recurring_rule(panel_id, day_of_week, templates)
        logger.info("Recurring rule for weekday %d set on panel %s", day_of_week, panel_id)
        return await self.repository.get_by_id(panel_id, refresh=True)

    async def delete_panel(self, panel_id: UUID) -> None:
        """
        Delete a panel with all of its availability and weekday rules.

        Workflows that booked one of its slots keep their own interview
        record; nothing on the workflow side is touched.
        """
        try:
            async with panel_locks.lock_for(panel_id):
                async with unit_of_work(self.db, "delete_panel"):
                    panel = await self.repository.get_by_id(panel_id, refresh=True)
                    if panel is None:
                        raise NotFoundError("Panel", panel_id)
                    await self.repository.delete(panel)
        except NotFoundError:
            panel_locks.discard(panel_id)
            raise
        panel_locks.discard(panel_id)
        logger.info("Panel %s deleted", panel_id)

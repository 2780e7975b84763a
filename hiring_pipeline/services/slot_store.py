"""
Panel availability and slot booking.

SlotStore owns the concrete, dated slots of each panel: whole-day upserts,
range queries for unbooked slots, whole-day deletion and atomic booking.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.db.unit_of_work import unit_of_work
from hiring_pipeline.errors import NotFoundError, SlotConflictError, ValidationError
from hiring_pipeline.models.panel import Panel, PanelAvailability, PanelTimeSlot
from hiring_pipeline.repositories.panel_repository import PanelRepository
from hiring_pipeline.schemas.common import TimeSlotInput, ensure_ordered_slots
from hiring_pipeline.schemas.panel import DateAvailabilityRead, TimeSlotRead
from hiring_pipeline.services.panel_locks import panel_locks
from hiring_pipeline.utils.time import Clock, utc_now

logger = logging.getLogger(__name__)


class SlotStore:
    """Service for panel availability and booking."""

    def __init__(self, db: AsyncSession, clock: Clock = utc_now):
        self.db = db
        self.clock = clock
        self.repository = PanelRepository(db)

    async def get_panel(self, panel_id: UUID, refresh: bool = False) -> Panel:
        panel = await self.repository.get_by_id(panel_id, refresh=refresh)
        if panel is None:
            raise NotFoundError("Panel", panel_id)
        return panel

    async def upsert_availability(
        self,
        panel_id: UUID,
        availability_date: date,
        time_slots: Sequence[TimeSlotInput],
    ) -> Panel:
        """
        Set the slots of one calendar date.

        An existing entry for the date has its slot list replaced as a whole
        (booked slots included); otherwise a new entry is added. All slots are
        validated before anything is written.
        """
        ensure_ordered_slots(time_slots)
        async with panel_locks.lock_for(panel_id):
            async with unit_of_work(self.db, "upsert_availability"):
                await self.get_panel(panel_id)
                await self.put_day(panel_id, availability_date, time_slots)
        logger.info(
            "Availability for panel %s on %s set to %d slot(s)",
            panel_id, availability_date, len(time_slots),
        )
        return await self.get_panel(panel_id, refresh=True)

    async def put_day(
        self,
        panel_id: UUID,
        availability_date: date,
        time_slots: Sequence[TimeSlotInput],
    ) -> PanelAvailability:
        """
        Whole-day upsert without locking or committing.

        Callers hold the panel lock and own the transaction.
        """
        existing = await self.repository.get_availability_for_date(panel_id, availability_date)
        if existing is not None:
            return await self.repository.replace_slots(existing, time_slots)
        return await self.repository.add_availability(panel_id, availability_date, time_slots)

    async def list_availability(self, panel_id: UUID) -> List[DateAvailabilityRead]:
        """Every dated entry of a panel, booked slots included."""
        await self.get_panel(panel_id)
        rows = await self.repository.list_availability(panel_id)
        return [DateAvailabilityRead.model_validate(row) for row in rows]

    async def query_available(
        self,
        panel_id: UUID,
        start_date: date,
        end_date: date,
    ) -> List[DateAvailabilityRead]:
        """
        Unbooked slots per date in the inclusive range.

        Dates whose slots are all booked are left out.
        """
        if start_date > end_date:
            raise ValidationError(
                "start_date must not be after end_date",
                [{"field": "start_date", "message": "must be on or before end_date"}],
            )
        await self.get_panel(panel_id)
        rows = await self.repository.list_availability(panel_id, start_date, end_date)

        available: List[DateAvailabilityRead] = []
        for row in rows:
            free = [TimeSlotRead.model_validate(slot) for slot in row.time_slots if not slot.is_booked]
            if free:
                available.append(DateAvailabilityRead(id=row.id, date=row.date, time_slots=free))
        return available

    async def reserve_slot(
        self,
        panel_id: UUID,
        slot_date: date,
        slot_id: UUID,
        workflow_id: UUID,
    ) -> PanelTimeSlot:
        """
        Book a slot inside the caller's transaction.

        The caller must hold panel_locks.lock_for(panel_id) and commit or roll
        back afterwards.
        """
        await self.get_panel(panel_id)
        availability = await self.repository.get_availability_for_date(panel_id, slot_date)
        if availability is None:
            raise NotFoundError("Availability", slot_date.isoformat())

        slot: Optional[PanelTimeSlot] = next(
            (candidate for candidate in availability.time_slots if candidate.id == slot_id),
            None,
        )
        if slot is None:
            raise NotFoundError("TimeSlot", slot_id)
        if slot.is_booked:
            logger.warning("Slot %s on %s is already booked", slot_id, slot_date)
            raise SlotConflictError(
                "Time slot is already booked",
                {"slot_id": str(slot_id), "date": slot_date.isoformat()},
            )

        booked = await self.repository.mark_slot_booked(slot.id, workflow_id, self.clock())
        if not booked:
            logger.warning("Slot %s on %s was booked concurrently", slot_id, slot_date)
            raise SlotConflictError(
                "Time slot is already booked",
                {"slot_id": str(slot_id), "date": slot_date.isoformat()},
            )
        await self.db.refresh(slot)
        return slot

    async def book_slot(
        self,
        panel_id: UUID,
        slot_date: date,
        slot_id: UUID,
        workflow_id: UUID,
    ) -> TimeSlotRead:
        """Book a slot for a workflow as its own committed operation."""
        async with panel_locks.lock_for(panel_id):
            async with unit_of_work(self.db, "book_slot"):
                slot = await self.reserve_slot(panel_id, slot_date, slot_id, workflow_id)
        logger.info("Slot %s on %s booked for workflow %s", slot_id, slot_date, workflow_id)
        return TimeSlotRead.model_validate(slot)

    async def delete_availability(self, panel_id: UUID, availability_id: UUID) -> Panel:
        """Remove a whole dated entry with all of its slots."""
        async with panel_locks.lock_for(panel_id):
            async with unit_of_work(self.db, "delete_availability"):
                await self.get_panel(panel_id)
                availability = await self.repository.get_availability_by_id(panel_id, availability_id)
                if availability is None:
                    raise NotFoundError("Availability", availability_id)
                await self.repository.delete_availability(availability)
        logger.info("Availability %s removed from panel %s", availability_id, panel_id)
        return await self.get_panel(panel_id, refresh=True)

"""
Panel repository - database operations for panels, availability and rules.
"""

from datetime import date, datetime
from typing import List, Optional, Sequence, Set
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.models.panel import (
    Panel,
    PanelAvailability,
    PanelTimeSlot,
    RecurringRule,
    RecurringSlotTemplate,
)
from hiring_pipeline.schemas.common import SlotTemplateInput, TimeSlotInput
from hiring_pipeline.schemas.panel import PanelCreate, PanelUpdate


class PanelRepository:
    """Repository for Panel database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, panel_id: UUID, refresh: bool = False) -> Optional[Panel]:
        """Get a panel by ID; refresh=True reloads rows already in the session."""
        query = select(Panel).where(Panel.id == panel_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list(
        self,
        limit: int = 50,
        offset: int = 0,
        is_active: Optional[bool] = None,
    ) -> List[Panel]:
        """List panels ordered by name."""
        query = select(Panel)
        if is_active is not None:
            query = query.where(Panel.is_active == is_active)
        query = query.order_by(Panel.name.asc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, data: PanelCreate) -> Panel:
        """Create a new panel."""
        panel = Panel(
            name=data.name,
            description=data.description,
            members=[str(member) for member in data.members],
            timezone=data.timezone,
            is_active=True,
            availability=[],
            recurring_rules=[],
        )
        self.db.add(panel)
        await self.db.flush()
        return panel

    async def update(self, panel: Panel, data: PanelUpdate) -> Panel:
        """Apply the fields that were set on the update payload."""
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if "members" in update_data:
            update_data["members"] = [str(member) for member in update_data["members"]]
        for field, value in update_data.items():
            setattr(panel, field, value)
        await self.db.flush()
        return panel

    async def delete(self, panel: Panel) -> None:
        """Delete a panel; its availability, slots and rules go with it."""
        await self.db.delete(panel)
        await self.db.flush()

    # Dated availability ----------------------------------------------------

    async def get_availability_for_date(
        self,
        panel_id: UUID,
        availability_date: date,
    ) -> Optional[PanelAvailability]:
        result = await self.db.execute(
            select(PanelAvailability).where(
                PanelAvailability.panel_id == panel_id,
                PanelAvailability.date == availability_date,
            )
        )
        return result.scalar_one_or_none()

    async def get_availability_by_id(
        self,
        panel_id: UUID,
        availability_id: UUID,
    ) -> Optional[PanelAvailability]:
        result = await self.db.execute(
            select(PanelAvailability).where(
                PanelAvailability.id == availability_id,
                PanelAvailability.panel_id == panel_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_availability(
        self,
        panel_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[PanelAvailability]:
        """Availability rows for a panel, optionally limited to an inclusive range."""
        query = select(PanelAvailability).where(PanelAvailability.panel_id == panel_id)
        if start_date is not None:
            query = query.where(PanelAvailability.date >= start_date)
        if end_date is not None:
            query = query.where(PanelAvailability.date <= end_date)
        query = query.order_by(PanelAvailability.date.asc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def availability_dates(
        self,
        panel_id: UUID,
        start_date: date,
        end_date: date,
    ) -> Set[date]:
        result = await self.db.execute(
            select(PanelAvailability.date).where(
                PanelAvailability.panel_id == panel_id,
                PanelAvailability.date >= start_date,
                PanelAvailability.date <= end_date,
            )
        )
        return set(result.scalars().all())

    async def add_availability(
        self,
        panel_id: UUID,
        availability_date: date,
        slots: Sequence[TimeSlotInput],
    ) -> PanelAvailability:
        availability = PanelAvailability(
            panel_id=panel_id,
            date=availability_date,
            time_slots=[_new_slot(slot) for slot in slots],
        )
        self.db.add(availability)
        await self.db.flush()
        return availability

    async def replace_slots(
        self,
        availability: PanelAvailability,
        slots: Sequence[TimeSlotInput],
    ) -> PanelAvailability:
        """Swap the whole slot list; the previous slots are deleted."""
        availability.time_slots = [_new_slot(slot) for slot in slots]
        await self.db.flush()
        return availability

    async def delete_availability(self, availability: PanelAvailability) -> None:
        await self.db.delete(availability)
        await self.db.flush()

    async def mark_slot_booked(
        self,
        slot_id: UUID,
        workflow_id: UUID,
        booked_at: datetime,
    ) -> bool:
        """
        Conditionally book a slot.

        Runs a single UPDATE ... WHERE is_booked = false, so of any number of
        concurrent callers at most one sees a matched row.
        """
        result = await self.db.execute(
            update(PanelTimeSlot)
            .where(
                PanelTimeSlot.id == slot_id,
                PanelTimeSlot.is_booked.is_(False),
            )
            .values(
                is_booked=True,
                booked_by_workflow_id=workflow_id,
                booked_at=booked_at,
            )
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0) == 1

    # Weekday rules ---------------------------------------------------------

    async def get_recurring_rule(self, panel_id: UUID, day_of_week: int) -> Optional[RecurringRule]:
        result = await self.db.execute(
            select(RecurringRule).where(
                RecurringRule.panel_id == panel_id,
                RecurringRule.day_of_week == day_of_week,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_recurring_rule(
        self,
        panel_id: UUID,
        day_of_week: int,
        templates: Sequence[SlotTemplateInput],
    ) -> RecurringRule:
        """Replace the templates of an existing weekday rule, or add the rule."""
        new_templates = [
            RecurringSlotTemplate(
                start_time=template.start_time,
                end_time=template.end_time,
                slot_duration=template.slot_duration,
            )
            for template in templates
        ]
        rule = await self.get_recurring_rule(panel_id, day_of_week)
        if rule is None:
            rule = RecurringRule(
                panel_id=panel_id,
                day_of_week=day_of_week,
                templates=new_templates,
            )
            self.db.add(rule)
        else:
            rule.templates = new_templates
        await self.db.flush()
        return rule


def _new_slot(slot: TimeSlotInput) -> PanelTimeSlot:
    return PanelTimeSlot(
        start_time=slot.start_time,
        end_time=slot.end_time,
        is_booked=False,
        booked_by_workflow_id=None,
        booked_at=None,
    )

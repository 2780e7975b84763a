"""
Materializes weekday rules into dated panel availability.
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.core.config import settings
from hiring_pipeline.db.unit_of_work import unit_of_work
from hiring_pipeline.errors import ValidationError
from hiring_pipeline.models.panel import PanelAvailability
from hiring_pipeline.schemas.common import TimeSlotInput
from hiring_pipeline.schemas.panel import DateAvailabilityRead
from hiring_pipeline.services.panel_locks import panel_locks
from hiring_pipeline.services.slot_store import SlotStore
from hiring_pipeline.utils.time import iter_days, weekday_index

logger = logging.getLogger(__name__)


class RecurringRuleExpander:
    """
    Generates availability for each day in a range that has a weekday rule.

    Dates that already have an entry, explicit or generated earlier, are never
    touched, which makes repeated runs over the same range no-ops.
    """

    def __init__(
        self,
        db: AsyncSession,
        slot_store: Optional[SlotStore] = None,
        max_days: Optional[int] = None,
    ):
        self.db = db
        self.slot_store = slot_store or SlotStore(db)
        self.max_days = max_days if max_days is not None else settings.MAX_GENERATION_DAYS

    def _check_range(self, start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValidationError(
                "start_date must not be after end_date",
                [{"field": "start_date", "message": "must be on or before end_date"}],
            )
        span = (end_date - start_date).days + 1
        if span > self.max_days:
            raise ValidationError(
                f"Date range covers {span} days; at most {self.max_days} can be generated at once",
                [{"field": "end_date", "message": f"range limited to {self.max_days} days"}],
            )

    async def expand(
        self,
        panel_id: UUID,
        start_date: date,
        end_date: date,
    ) -> List[DateAvailabilityRead]:
        """
        Create availability from the panel's weekday rules, inclusive range.

        Returns the entries created, in date order; their dates are the days
        that were populated.
        """
        self._check_range(start_date, end_date)

        created: List[PanelAvailability] = []
        async with panel_locks.lock_for(panel_id):
            async with unit_of_work(self.db, "expand_recurring_rules"):
                panel = await self.slot_store.get_panel(panel_id)
                rules = {rule.day_of_week: rule for rule in panel.recurring_rules}
                taken = await self.slot_store.repository.availability_dates(panel_id, start_date, end_date)

                for day in iter_days(start_date, end_date):
                    rule = rules.get(weekday_index(day))
                    if rule is None or day in taken:
                        continue
                    slots = [
                        TimeSlotInput(start_time=template.start_time, end_time=template.end_time)
                        for template in rule.templates
                    ]
                    if not slots:
                        continue
                    created.append(await self.slot_store.put_day(panel_id, day, slots))

        logger.info(
            "Generated %d availability date(s) for panel %s between %s and %s",
            len(created), panel_id, start_date, end_date,
        )
        return [DateAvailabilityRead.model_validate(entry) for entry in created]

"""
Panel router - panels, dated availability and weekday rules.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.core.dependencies import get_clock, get_db
from hiring_pipeline.schemas.panel import (
    AvailabilityCreate,
    DateAvailabilityRead,
    DateRange,
    GenerateAvailabilityResult,
    PanelCreate,
    PanelRead,
    PanelUpdate,
    RecurringRuleCreate,
)
from hiring_pipeline.services.panel_service import PanelService
from hiring_pipeline.services.recurring_rule_expander import RecurringRuleExpander
from hiring_pipeline.services.slot_store import SlotStore
from hiring_pipeline.utils.time import Clock

router = APIRouter(prefix="/panels", tags=["panels"])


@router.get("", response_model=List[PanelRead])
async def list_panels(
    db: AsyncSession = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    is_active: Optional[bool] = None,
):
    """List panels with pagination and an optional active filter."""
    service = PanelService(db)
    return await service.list_panels(limit=limit, offset=offset, is_active=is_active)


@router.post("", response_model=PanelRead, status_code=status.HTTP_201_CREATED)
async def create_panel(
    data: PanelCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new interview panel."""
    service = PanelService(db)
    return await service.create_panel(data)


@router.get("/{panel_id}", response_model=PanelRead)
async def get_panel(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a panel by ID."""
    service = PanelService(db)
    return await service.get_panel(panel_id)


@router.put("/{panel_id}", response_model=PanelRead)
async def update_panel(
    panel_id: UUID,
    data: PanelUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update panel fields."""
    service = PanelService(db)
    return await service.update_panel(panel_id, data)


@router.delete("/{panel_id}")
async def delete_panel(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a panel together with its availability and weekday rules."""
    service = PanelService(db)
    await service.delete_panel(panel_id)
    return {"message": "Panel deleted successfully"}


@router.post("/{panel_id}/availability", response_model=PanelRead)
async def upsert_availability(
    panel_id: UUID,
    data: AvailabilityCreate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Set the slots of one date.

    An existing entry for the date has all of its slots replaced.
    """
    store = SlotStore(db, clock=clock)
    return await store.upsert_availability(panel_id, data.date, data.time_slots)


@router.get("/{panel_id}/availability", response_model=List[DateAvailabilityRead])
async def list_availability(
    panel_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Every dated entry of the panel, booked slots included."""
    store = SlotStore(db)
    return await store.list_availability(panel_id)


@router.get("/{panel_id}/available-slots", response_model=List[DateAvailabilityRead])
async def available_slots(
    panel_id: UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Unbooked slots per date between start_date and end_date (inclusive)."""
    store = SlotStore(db)
    return await store.query_available(panel_id, start_date, end_date)


@router.delete("/{panel_id}/availability/{availability_id}", response_model=PanelRead)
async def delete_availability(
    panel_id: UUID,
    availability_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Remove a dated entry and all of its slots."""
    store = SlotStore(db)
    return await store.delete_availability(panel_id, availability_id)


@router.post("/{panel_id}/recurring-availability", response_model=PanelRead)
async def add_recurring_rule(
    panel_id: UUID,
    data: RecurringRuleCreate,
    db: AsyncSession = Depends(get_db),
):
    """Set the slot templates for a weekday (0 = Sunday)."""
    service = PanelService(db)
    return await service.add_recurring_rule(panel_id, data.day_of_week, data.time_slots)


@router.post("/{panel_id}/generate-availability", response_model=GenerateAvailabilityResult)
async def generate_availability(
    panel_id: UUID,
    data: DateRange,
    db: AsyncSession = Depends(get_db),
):
    """Materialize the weekday rules into dated availability for a range."""
    expander = RecurringRuleExpander(db)
    generated = await expander.expand(panel_id, data.start_date, data.end_date)
    return GenerateAvailabilityResult(
        message=f"Generated availability for {len(generated)} date(s)",
        generated_dates=[entry.date for entry in generated],
        generated=generated,
    )

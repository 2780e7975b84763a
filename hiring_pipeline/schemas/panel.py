"""
Pydantic schemas for panels, their dated availability and weekday rules.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hiring_pipeline.schemas.base import RecordRead
from hiring_pipeline.schemas.common import SlotTemplateInput, TimeSlotInput


class PanelCreate(BaseModel):
    """Payload to create an interview panel."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    members: List[UUID] = Field(..., min_length=1, description="Interviewer user ids")
    timezone: str = Field("UTC", max_length=64)

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class PanelUpdate(BaseModel):
    """Partial panel update; omitted fields keep their value."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    members: Optional[List[UUID]] = Field(None, min_length=1)
    is_active: Optional[bool] = None


class AvailabilityCreate(BaseModel):
    """Explicit slots for one calendar date (replaces that day's slots)."""

    date: date
    time_slots: List[TimeSlotInput] = Field(..., min_length=1)


class RecurringRuleCreate(BaseModel):
    """Weekday rule; 0 = Sunday ... 6 = Saturday."""

    day_of_week: int = Field(..., ge=0, le=6)
    time_slots: List[SlotTemplateInput] = Field(..., min_length=1)


class DateRange(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_order(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class TimeSlotRead(BaseModel):
    id: UUID
    start_time: str
    end_time: str
    is_booked: bool
    booked_by_workflow_id: Optional[UUID] = None
    booked_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DateAvailabilityRead(BaseModel):
    id: UUID
    date: date
    time_slots: List[TimeSlotRead]

    model_config = ConfigDict(from_attributes=True)


class SlotTemplateRead(BaseModel):
    start_time: str
    end_time: str
    slot_duration: int

    model_config = ConfigDict(from_attributes=True)


class RecurringRuleRead(BaseModel):
    id: UUID
    day_of_week: int
    templates: List[SlotTemplateRead]

    model_config = ConfigDict(from_attributes=True)


class PanelRead(RecordRead):
    """Full panel representation including availability data."""

    name: str
    description: str
    members: List[UUID]
    timezone: str
    is_active: bool
    availability: List[DateAvailabilityRead] = []
    recurring_rules: List[RecurringRuleRead] = []


class GenerateAvailabilityResult(BaseModel):
    message: str
    generated_dates: List[date]
    generated: List[DateAvailabilityRead]

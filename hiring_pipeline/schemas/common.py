"""
Shared value schemas: file handles and "HH:MM" time slots.
"""

import re
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from hiring_pipeline.errors import ValidationError

# Zero-padded 24-hour clock, so string order equals time order
HHMM_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


class FileRef(BaseModel):
    """Opaque handle to a stored upload. The contents are never read."""

    filename: str = Field(..., min_length=1, max_length=255)
    path: str = Field(..., min_length=1, max_length=1000)
    mimetype: Optional[str] = Field(None, max_length=255)


def _check_hhmm(value: str) -> str:
    if not HHMM_PATTERN.match(value):
        raise ValueError("Time must be HH:MM in 24-hour format (e.g. 09:00)")
    return value


class TimeSlotInput(BaseModel):
    """A slot submitted for a specific date."""

    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_hhmm(cls, v):
        return _check_hhmm(v)


class SlotTemplateInput(TimeSlotInput):
    """A slot template attached to a weekday rule."""

    slot_duration: int = Field(60, ge=15, le=480, description="Duration in minutes")


def ensure_ordered_slots(slots: Sequence[TimeSlotInput], field: str = "time_slots") -> None:
    """
    Reject the whole batch if any slot does not start before it ends.

    Raises ValidationError listing every offending slot by index.
    """
    if not slots:
        raise ValidationError(
            "At least one time slot is required",
            [{"field": field, "message": "must contain at least one slot"}],
        )
    problems: List[dict] = []
    for index, slot in enumerate(slots):
        if slot.start_time >= slot.end_time:
            problems.append({
                "field": f"{field}[{index}]",
                "message": f"Invalid time slot: {slot.start_time} - {slot.end_time}. "
                           "Start time must be before end time.",
            })
    if problems:
        raise ValidationError("Invalid time slots", problems)

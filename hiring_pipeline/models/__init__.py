"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from hiring_pipeline.models.panel import (
    Panel,
    PanelAvailability,
    PanelTimeSlot,
    RecurringRule,
    RecurringSlotTemplate,
)
from hiring_pipeline.models.workflow import Workflow

# Export all models
__all__ = [
    "Panel",
    "PanelAvailability",
    "PanelTimeSlot",
    "RecurringRule",
    "RecurringSlotTemplate",
    "Workflow",
]

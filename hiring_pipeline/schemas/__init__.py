"""
Schemas package.

Import all schemas here for easy access.
"""

from hiring_pipeline.schemas.common import FileRef, TimeSlotInput, SlotTemplateInput
from hiring_pipeline.schemas.panel import (
    PanelCreate,
    PanelUpdate,
    PanelRead,
    AvailabilityCreate,
    RecurringRuleCreate,
    DateAvailabilityRead,
    TimeSlotRead,
    GenerateAvailabilityResult,
)
from hiring_pipeline.schemas.workflow import (
    WorkflowStage,
    WorkflowAction,
    WorkflowStages,
    CandidateDetails,
    WorkflowCreate,
    WorkflowRead,
)

__all__ = [
    "FileRef",
    "TimeSlotInput",
    "SlotTemplateInput",
    "PanelCreate",
    "PanelUpdate",
    "PanelRead",
    "AvailabilityCreate",
    "RecurringRuleCreate",
    "DateAvailabilityRead",
    "TimeSlotRead",
    "GenerateAvailabilityResult",
    "WorkflowStage",
    "WorkflowAction",
    "WorkflowStages",
    "CandidateDetails",
    "WorkflowCreate",
    "WorkflowRead",
]

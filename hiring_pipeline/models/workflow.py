"""
Workflow model.

Tracks one candidate's progress through the hiring pipeline.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hiring_pipeline.db.types import PydanticJSON
from hiring_pipeline.models.base_model import TimestampedModel
from hiring_pipeline.schemas.workflow import CandidateDetails, WorkflowStage, WorkflowStages


class Workflow(TimestampedModel):
    """
    Workflow table - one row per candidate promoted into the pipeline.

    current_stage only changes through conditional updates that also match
    the expected stage and version (see WorkflowRepository.apply_transition).
    """

    __tablename__ = "workflow"

    # Source application (managed outside this service); one workflow each
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        unique=True,
    )

    campaign_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    candidate_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    current_stage: Mapped[WorkflowStage] = mapped_column(
        Enum(
            WorkflowStage,
            name="workflow_stage",
            native_enum=False,
            length=50,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=WorkflowStage.INTERVIEW_1_SETUP,
        index=True,
    )

    next_activity_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    stages: Mapped[WorkflowStages] = mapped_column(
        PydanticJSON(WorkflowStages),
        nullable=False,
        default=lambda: WorkflowStages(),
    )

    candidate_details: Mapped[CandidateDetails] = mapped_column(
        PydanticJSON(CandidateDetails),
        nullable=False,
        default=lambda: CandidateDetails(),
    )

    # Optimistic concurrency token, bumped on every committed transition
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

"""
Workflow repository - database operations for Workflow.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.models.workflow import Workflow
from hiring_pipeline.schemas.workflow import (
    CandidateDetails,
    WorkflowCreate,
    WorkflowStage,
    WorkflowStages,
)


class WorkflowRepository:
    """Repository for Workflow database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, workflow_id: UUID) -> Optional[Workflow]:
        """Get a workflow by ID, always reading the stored row."""
        result = await self.db.execute(
            select(Workflow)
            .where(Workflow.id == workflow_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_application(self, application_id: UUID) -> Optional[Workflow]:
        result = await self.db.execute(
            select(Workflow).where(Workflow.application_id == application_id)
        )
        return result.scalar_one_or_none()

    async def list(self, limit: int = 200, offset: int = 0) -> List[Workflow]:
        """Soonest next activity first (undated last), then newest."""
        result = await self.db.execute(
            select(Workflow)
            .order_by(
                Workflow.next_activity_date.asc().nulls_last(),
                Workflow.created_at.desc(),
            )
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def create(self, data: WorkflowCreate, now: datetime) -> Optional[Workflow]:
        """
        Insert a workflow for an application.

        Returns None when another workflow already holds the application id;
        the session must be rolled back by the caller in that case.
        """
        workflow = Workflow(
            application_id=data.application_id,
            campaign_id=data.campaign_id,
            candidate_name=data.candidate_name,
            current_stage=WorkflowStage.INTERVIEW_1_SETUP,
            next_activity_date=None,
            stages=WorkflowStages(),
            candidate_details=CandidateDetails(),
            version=1,
            created_at=now,
            updated_at=now,
        )
        self.db.add(workflow)
        try:
            await self.db.flush()
        except IntegrityError:
            return None
        return workflow

    async def apply_transition(
        self,
        workflow: Workflow,
        expected_stage: WorkflowStage,
        values: Dict[str, Any],
    ) -> bool:
        """
        Write `values` only if the stored row still has the stage and version
        `workflow` was loaded with.

        Returns False when another writer got there first; nothing is written
        in that case.
        """
        result = await self.db.execute(
            update(Workflow)
            .where(
                Workflow.id == workflow.id,
                Workflow.current_stage == expected_stage,
                Workflow.version == workflow.version,
            )
            .values(**values, version=Workflow.version + 1)
            .execution_options(synchronize_session=False)
        )
        if int(result.rowcount or 0) != 1:
            return False
        await self.db.refresh(workflow)
        return True

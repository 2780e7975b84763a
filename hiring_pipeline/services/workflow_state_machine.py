"""
Candidate workflow stage machine.

Each action has exactly one stage it may be applied in. A transition loads
the workflow, checks that stage, builds the new column values and writes them
with a conditional update keyed on (id, expected stage, version), all inside
one unit of work. Interview setup books the panel slot in that same unit of
work, so a failed booking or a lost race leaves both the slot and the
workflow untouched.
"""

import logging
from contextlib import nullcontext
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.core.config import settings
from hiring_pipeline.db.unit_of_work import unit_of_work
from hiring_pipeline.errors import NotFoundError, StateConflictError, ValidationError
from hiring_pipeline.models.workflow import Workflow
from hiring_pipeline.repositories.workflow_repository import WorkflowRepository
from hiring_pipeline.schemas.panel import DateAvailabilityRead
from hiring_pipeline.schemas.workflow import (
    CandidateDetailsUpdate,
    InterviewResultPayload,
    InterviewResultRecord,
    InterviewSetupPayload,
    InterviewSetupRecord,
    OnboardingRecord,
    OnboardingUpdatePayload,
    TechnicalTestRecord,
    TechnicalTestResultPayload,
    TechnicalTestSetupPayload,
    TechnicalTestSetupRecord,
    TechnicalTestSubmitPayload,
    WorkflowAction,
    WorkflowCreate,
    WorkflowGroups,
    WorkflowRead,
    WorkflowStage,
)
from hiring_pipeline.services.panel_locks import panel_locks
from hiring_pipeline.services.slot_store import SlotStore
from hiring_pipeline.utils.time import Clock, slot_start_datetime, utc_now

logger = logging.getLogger(__name__)

Values = Dict[str, Any]

# Stage each action must find the workflow in
REQUIRED_STAGE: Dict[WorkflowAction, WorkflowStage] = {
    WorkflowAction.SETUP_INTERVIEW: WorkflowStage.INTERVIEW_1_SETUP,
    WorkflowAction.RECORD_INTERVIEW_RESULT: WorkflowStage.INTERVIEW_1,
    WorkflowAction.SETUP_TECHNICAL_TEST: WorkflowStage.TECHNICAL_TEST_SETUP,
    WorkflowAction.SUBMIT_TECHNICAL_TEST: WorkflowStage.TECHNICAL_TEST_SCHEDULED,
    WorkflowAction.RECORD_TECHNICAL_TEST_RESULT: WorkflowStage.TECHNICAL_TEST_REVIEW,
    WorkflowAction.UPDATE_ONBOARDING: WorkflowStage.ONBOARDING,
}

PAYLOAD_SCHEMA: Dict[WorkflowAction, Type[BaseModel]] = {
    WorkflowAction.SETUP_INTERVIEW: InterviewSetupPayload,
    WorkflowAction.RECORD_INTERVIEW_RESULT: InterviewResultPayload,
    WorkflowAction.SETUP_TECHNICAL_TEST: TechnicalTestSetupPayload,
    WorkflowAction.SUBMIT_TECHNICAL_TEST: TechnicalTestSubmitPayload,
    WorkflowAction.RECORD_TECHNICAL_TEST_RESULT: TechnicalTestResultPayload,
    WorkflowAction.UPDATE_ONBOARDING: OnboardingUpdatePayload,
}


def _validation_details(exc: PydanticValidationError) -> List[dict]:
    return [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]


def _duplicate_application(application_id: UUID, workflow_id: Optional[UUID] = None) -> StateConflictError:
    details = {"application_id": str(application_id)}
    if workflow_id is not None:
        details["workflow_id"] = str(workflow_id)
    return StateConflictError("A workflow already exists for this application", details)


class WorkflowStateMachine:
    """Service for workflow creation, lookup and stage transitions."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = utc_now,
        slot_store: Optional[SlotStore] = None,
    ):
        self.db = db
        self.clock = clock
        self.repository = WorkflowRepository(db)
        self.slot_store = slot_store or SlotStore(db, clock=clock)
        self._handlers: Dict[WorkflowAction, Callable[..., Awaitable[Values]]] = {
            WorkflowAction.SETUP_INTERVIEW: self._setup_interview,
            WorkflowAction.RECORD_INTERVIEW_RESULT: self._record_interview_result,
            WorkflowAction.SETUP_TECHNICAL_TEST: self._setup_technical_test,
            WorkflowAction.SUBMIT_TECHNICAL_TEST: self._submit_technical_test,
            WorkflowAction.RECORD_TECHNICAL_TEST_RESULT: self._record_technical_test_result,
            WorkflowAction.UPDATE_ONBOARDING: self._update_onboarding,
        }

    # Lookup / creation -----------------------------------------------------

    async def get_workflow(self, workflow_id: UUID) -> Workflow:
        workflow = await self.repository.get_by_id(workflow_id)
        if workflow is None:
            raise NotFoundError("Workflow", workflow_id)
        return workflow

    async def create_workflow(self, data: WorkflowCreate) -> Workflow:
        """Start the pipeline for a promoted application (once per application)."""
        async with unit_of_work(self.db, "create_workflow"):
            existing = await self.repository.get_by_application(data.application_id)
            if existing is not None:
                raise _duplicate_application(data.application_id, existing.id)
            workflow = await self.repository.create(data, now=self.clock())
            if workflow is None:
                # Lost the race to a concurrent promotion of the same application
                raise _duplicate_application(data.application_id)
        logger.info("Workflow %s created for application %s", workflow.id, data.application_id)
        return workflow

    async def list_workflows(self, limit: int = 200, offset: int = 0) -> List[Workflow]:
        return await self.repository.list(limit=limit, offset=offset)

    async def list_workflows_by_date(self, limit: int = 200, offset: int = 0) -> WorkflowGroups:
        """Group workflows by next-activity calendar date ("No Date" when unset)."""
        groups: WorkflowGroups = {}
        for workflow in await self.repository.list(limit=limit, offset=offset):
            key = workflow.next_activity_date.date().isoformat() if workflow.next_activity_date else "No Date"
            groups.setdefault(key, []).append(WorkflowRead.model_validate(workflow))
        return groups

    async def available_slots(
        self,
        workflow_id: UUID,
        panel_id: UUID,
        start_date: date,
        end_date: date,
    ) -> List[DateAvailabilityRead]:
        """Unbooked panel slots a workflow's interview could be booked into."""
        await self.get_workflow(workflow_id)
        return await self.slot_store.query_available(panel_id, start_date, end_date)

    # Transitions -----------------------------------------------------------

    async def transition(
        self,
        workflow_id: UUID,
        action: WorkflowAction,
        payload: Union[BaseModel, Dict[str, Any]],
        actor_id: Optional[UUID] = None,
    ) -> Workflow:
        """
        Apply one action to a workflow.

        Raises StateConflictError (no mutation) when the workflow is not in
        the action's required stage or was changed concurrently.
        """
        try:
            action = WorkflowAction(action)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown workflow action: {action}",
                [{"field": "action", "message": "unknown action"}],
            ) from exc
        payload = self._parse_payload(action, payload)
        required = REQUIRED_STAGE[action]

        if action is WorkflowAction.SETUP_INTERVIEW:
            guard = panel_locks.lock_for(payload.panel_id)
        else:
            guard = nullcontext()

        async with guard:
            async with unit_of_work(self.db, action.value):
                workflow = await self.get_workflow(workflow_id)
                if workflow.current_stage != required:
                    logger.warning(
                        "Workflow %s: %s rejected in stage %s",
                        workflow_id, action.value, workflow.current_stage.value,
                    )
                    raise StateConflictError(
                        "Invalid stage for this action",
                        {
                            "action": action.value,
                            "required_stage": required.value,
                            "current_stage": workflow.current_stage.value,
                        },
                    )
                values = await self._handlers[action](workflow, payload, actor_id)
                await self._write(workflow, required, values)

        logger.info(
            "Workflow %s: %s -> %s",
            workflow_id, required.value, workflow.current_stage.value,
        )
        return workflow

    async def book_interview_slot(
        self,
        workflow_id: UUID,
        panel_id: UUID,
        scheduled_date: date,
        time_slot_id: UUID,
        meeting_link: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ) -> Workflow:
        """Interview setup: book the panel slot and move to Interview 1."""
        payload = InterviewSetupPayload(
            panel_id=panel_id,
            scheduled_date=scheduled_date,
            time_slot_id=time_slot_id,
            meeting_link=meeting_link,
        )
        return await self.transition(workflow_id, WorkflowAction.SETUP_INTERVIEW, payload, actor_id)

    async def update_candidate_details(
        self,
        workflow_id: UUID,
        data: CandidateDetailsUpdate,
    ) -> Workflow:
        """Merge candidate details; allowed in any stage."""
        async with unit_of_work(self.db, "update_candidate_details"):
            workflow = await self.get_workflow(workflow_id)
            incoming = data.model_dump(exclude_unset=True, exclude_none=True)
            details = workflow.candidate_details.model_copy(update=incoming)
            await self._write(workflow, workflow.current_stage, {"candidate_details": details})
        return workflow

    # Internals -------------------------------------------------------------

    def _parse_payload(self, action: WorkflowAction, payload: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        schema = PAYLOAD_SCHEMA[action]
        if isinstance(payload, schema):
            return payload
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()
        try:
            return schema.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid payload for {action.value}", _validation_details(exc)) from exc

    async def _write(self, workflow: Workflow, expected_stage: WorkflowStage, values: Values) -> None:
        values = {**values, "updated_at": self.clock()}
        applied = await self.repository.apply_transition(workflow, expected_stage, values)
        if not applied:
            logger.warning("Workflow %s changed concurrently; transition rejected", workflow.id)
            raise StateConflictError(
                "Workflow was modified by another request",
                {"workflow_id": str(workflow.id), "expected_stage": expected_stage.value},
            )

    async def _setup_interview(
        self,
        workflow: Workflow,
        payload: InterviewSetupPayload,
        actor_id: Optional[UUID],
    ) -> Values:
        slot = await self.slot_store.reserve_slot(
            payload.panel_id,
            payload.scheduled_date,
            payload.time_slot_id,
            workflow.id,
        )
        record = InterviewSetupRecord(
            panel_id=payload.panel_id,
            scheduled_date=payload.scheduled_date,
            scheduled_time=f"{slot.start_time} - {slot.end_time}",
            time_slot_id=slot.id,
            meeting_link=payload.meeting_link or "",
            assigned_by=actor_id,
            setup_date=self.clock(),
        )
        return {
            "stages": workflow.stages.model_copy(update={"interview1_setup": record}),
            "current_stage": WorkflowStage.INTERVIEW_1,
            "next_activity_date": slot_start_datetime(payload.scheduled_date, slot.start_time),
        }

    async def _record_interview_result(
        self,
        workflow: Workflow,
        payload: InterviewResultPayload,
        actor_id: Optional[UUID],
    ) -> Values:
        record = InterviewResultRecord(
            conducted_date=self.clock(),
            result=payload.result,
            remarks=payload.remarks,
            reviewed_by=actor_id,
            feedback_link=payload.feedback_link,
            feedback_form=payload.feedback_form,
        )
        values: Values = {"stages": workflow.stages.model_copy(update={"interview1": record})}
        if payload.result == "Reject":
            values.update(current_stage=WorkflowStage.REJECTED, next_activity_date=None)
        else:
            values.update(
                current_stage=WorkflowStage.TECHNICAL_TEST_SETUP,
                next_activity_date=self.clock() + timedelta(days=settings.INTERVIEW_RESULT_FOLLOWUP_DAYS),
            )
        return values

    async def _setup_technical_test(
        self,
        workflow: Workflow,
        payload: TechnicalTestSetupPayload,
        actor_id: Optional[UUID],
    ) -> Values:
        record = TechnicalTestSetupRecord(
            test_paper=payload.test_paper,
            scheduled_date=payload.scheduled_date,
            test_evaluators=payload.test_evaluators,
            notify_candidate=payload.notify_candidate,
            send_attachment_in_notification=payload.send_attachment_in_notification,
            setup_by=actor_id,
        )
        return {
            "stages": workflow.stages.model_copy(update={"technical_test_setup": record}),
            "current_stage": WorkflowStage.TECHNICAL_TEST_SCHEDULED,
            "next_activity_date": payload.scheduled_date,
        }

    async def _submit_technical_test(
        self,
        workflow: Workflow,
        payload: TechnicalTestSubmitPayload,
        actor_id: Optional[UUID],
    ) -> Values:
        current = workflow.stages.technical_test or TechnicalTestRecord()
        record = current.model_copy(update={
            "answer_sheet": payload.answer_sheet,
            "assigned_reviewers": payload.assigned_reviewers,
            "submitted_date": self.clock(),
        })
        return {
            "stages": workflow.stages.model_copy(update={"technical_test": record}),
            "current_stage": WorkflowStage.TECHNICAL_TEST_REVIEW,
            "next_activity_date": self.clock() + timedelta(days=settings.TECHNICAL_TEST_REVIEW_DAYS),
        }

    async def _record_technical_test_result(
        self,
        workflow: Workflow,
        payload: TechnicalTestResultPayload,
        actor_id: Optional[UUID],
    ) -> Values:
        current = workflow.stages.technical_test or TechnicalTestRecord()
        changes: Values = {
            "result": payload.result,
            "remarks": payload.remarks,
            "reviewed_by": actor_id,
            "review_date": self.clock(),
        }
        if payload.result_file is not None:
            changes["result_file"] = payload.result_file
        values: Values = {
            "stages": workflow.stages.model_copy(update={"technical_test": current.model_copy(update=changes)}),
        }
        if payload.result == "Reject":
            values.update(current_stage=WorkflowStage.REJECTED, next_activity_date=None)
        else:
            values.update(
                current_stage=WorkflowStage.ONBOARDING,
                next_activity_date=self.clock() + timedelta(days=settings.ONBOARDING_FOLLOWUP_DAYS),
            )
        return values

    async def _update_onboarding(
        self,
        workflow: Workflow,
        payload: OnboardingUpdatePayload,
        actor_id: Optional[UUID],
    ) -> Values:
        current = workflow.stages.onboarding or OnboardingRecord()
        changes = payload.model_dump(exclude={"complete"}, exclude_none=True)
        if payload.complete:
            changes.update(completed_date=self.clock(), completed_by=actor_id)
        values: Values = {
            "stages": workflow.stages.model_copy(update={"onboarding": current.model_copy(update=changes)}),
        }
        if payload.complete:
            values.update(current_stage=WorkflowStage.COMPLETED, next_activity_date=None)
        return values

"""
Workflow router - candidate pipeline lookups and stage transitions.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_pipeline.core.dependencies import get_actor_id, get_clock, get_db
from hiring_pipeline.schemas.panel import DateAvailabilityRead
from hiring_pipeline.schemas.workflow import (
    CandidateDetailsUpdate,
    InterviewResultPayload,
    InterviewSetupPayload,
    OnboardingUpdatePayload,
    TechnicalTestResultPayload,
    TechnicalTestSetupPayload,
    TechnicalTestSubmitPayload,
    WorkflowAction,
    WorkflowCreate,
    WorkflowGroups,
    WorkflowRead,
)
from hiring_pipeline.services.workflow_state_machine import WorkflowStateMachine
from hiring_pipeline.utils.time import Clock

router = APIRouter(prefix="/workflows", tags=["workflows"])


def get_state_machine(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> WorkflowStateMachine:
    return WorkflowStateMachine(db, clock=clock)


@router.post("", response_model=WorkflowRead, status_code=status.HTTP_201_CREATED)
async def create_workflow(
    data: WorkflowCreate,
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    """Start the pipeline for a promoted application."""
    return await machine.create_workflow(data)


@router.get("", response_model=Union[WorkflowGroups, List[WorkflowRead]])
async def list_workflows(
    machine: WorkflowStateMachine = Depends(get_state_machine),
    limit: int = Query(200, ge=1, le=500),
    offset: int = Query(0, ge=0),
    group_by: Optional[str] = Query(None, pattern="^date$"),
):
    """
    List workflows, soonest next activity first.

    With group_by=date the result is keyed by next-activity date ("No Date"
    for workflows without one).
    """
    if group_by == "date":
        return await machine.list_workflows_by_date(limit=limit, offset=offset)
    return await machine.list_workflows(limit=limit, offset=offset)


@router.get("/{workflow_id}", response_model=WorkflowRead)
async def get_workflow(
    workflow_id: UUID,
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    """Get a workflow by ID."""
    return await machine.get_workflow(workflow_id)


@router.get("/{workflow_id}/available-slots", response_model=List[DateAvailabilityRead])
async def workflow_available_slots(
    workflow_id: UUID,
    panel_id: UUID = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    """Unbooked slots of a panel that this workflow's interview could use."""
    return await machine.available_slots(workflow_id, panel_id, start_date, end_date)


@router.put("/{workflow_id}/interview1-setup", response_model=WorkflowRead)
async def setup_interview(
    workflow_id: UUID,
    data: InterviewSetupPayload,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    """Book a panel slot and move the workflow to Interview 1."""
    return await machine.transition(workflow_id, WorkflowAction.SETUP_INTERVIEW, data, actor_id)


@router.put("/{workflow_id}/interview1-result", response_model=WorkflowRead)
async def record_interview_result(
    workflow_id: UUID,
    data: InterviewResultPayload,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    return await machine.transition(workflow_id, WorkflowAction.RECORD_INTERVIEW_RESULT, data, actor_id)


@router.put("/{workflow_id}/technical-test-setup", response_model=WorkflowRead)
async def setup_technical_test(
    workflow_id: UUID,
    data: TechnicalTestSetupPayload,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    return await machine.transition(workflow_id, WorkflowAction.SETUP_TECHNICAL_TEST, data, actor_id)


@router.put("/{workflow_id}/technical-test-submit", response_model=WorkflowRead)
async def submit_technical_test(
    workflow_id: UUID,
    data: TechnicalTestSubmitPayload,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    return await machine.transition(workflow_id, WorkflowAction.SUBMIT_TECHNICAL_TEST, data, actor_id)


@router.put("/{workflow_id}/technical-test-result", response_model=WorkflowRead)
async def record_technical_test_result(
    workflow_id: UUID,
    data: TechnicalTestResultPayload,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    return await machine.transition(workflow_id, WorkflowAction.RECORD_TECHNICAL_TEST_RESULT, data, actor_id)


@router.put("/{workflow_id}/onboarding", response_model=WorkflowRead)
async def update_onboarding(
    workflow_id: UUID,
    data: OnboardingUpdatePayload,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    """Merge onboarding flags; complete=true closes the workflow."""
    return await machine.transition(workflow_id, WorkflowAction.UPDATE_ONBOARDING, data, actor_id)


@router.put("/{workflow_id}/candidate-details", response_model=WorkflowRead)
async def update_candidate_details(
    workflow_id: UUID,
    data: CandidateDetailsUpdate,
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    """Merge candidate details; allowed in any stage."""
    return await machine.update_candidate_details(workflow_id, data)


@router.post("/{workflow_id}/transitions/{action}", response_model=WorkflowRead)
async def apply_transition(
    workflow_id: UUID,
    action: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    actor_id: Optional[UUID] = Depends(get_actor_id),
    machine: WorkflowStateMachine = Depends(get_state_machine),
):
    """Generic entry point: apply any named action with a JSON payload."""
    return await machine.transition(workflow_id, action, payload or {}, actor_id)

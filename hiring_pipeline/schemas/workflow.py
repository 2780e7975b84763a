"""
Workflow schemas: stage enum, per-stage records, transition payloads.

Each stage keeps its own optional record under WorkflowStages; a record is
filled when its stage is worked and is never cleared by a later stage.
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from hiring_pipeline.schemas.base import RecordRead
from hiring_pipeline.schemas.common import FileRef


class WorkflowStage(str, Enum):
    """Pipeline stages in order; REJECTED and COMPLETED are terminal."""

    INTERVIEW_1_SETUP = "Interview 1 - Set up"
    INTERVIEW_1 = "Interview 1"
    TECHNICAL_TEST_SETUP = "Technical Test - Set up"
    TECHNICAL_TEST_SCHEDULED = "Technical Test - Scheduled"
    TECHNICAL_TEST_REVIEW = "Technical Test - Review"
    ONBOARDING = "Onboarding"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class WorkflowAction(str, Enum):
    SETUP_INTERVIEW = "setup_interview"
    RECORD_INTERVIEW_RESULT = "record_interview_result"
    SETUP_TECHNICAL_TEST = "setup_technical_test"
    SUBMIT_TECHNICAL_TEST = "submit_technical_test"
    RECORD_TECHNICAL_TEST_RESULT = "record_technical_test_result"
    UPDATE_ONBOARDING = "update_onboarding"


InterviewOutcome = Literal["Select", "Reject"]


def _check_http_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not (value.startswith("http://") or value.startswith("https://")):
        raise ValueError("URL must start with http:// or https://")
    return value


# Stage records -------------------------------------------------------------

class InterviewSetupRecord(BaseModel):
    panel_id: UUID
    scheduled_date: date
    scheduled_time: str
    time_slot_id: UUID
    meeting_link: str = ""
    assigned_by: Optional[UUID] = None
    setup_date: datetime


class InterviewResultRecord(BaseModel):
    conducted_date: datetime
    result: InterviewOutcome
    remarks: str
    reviewed_by: Optional[UUID] = None
    feedback_link: Optional[str] = None
    feedback_form: Optional[FileRef] = None


class TechnicalTestSetupRecord(BaseModel):
    test_paper: FileRef
    scheduled_date: datetime
    test_evaluators: List[UUID] = []
    notify_candidate: bool = False
    send_attachment_in_notification: bool = False
    setup_by: Optional[UUID] = None


class TechnicalTestRecord(BaseModel):
    answer_sheet: Optional[FileRef] = None
    assigned_reviewers: List[UUID] = []
    submitted_date: Optional[datetime] = None
    result: Optional[InterviewOutcome] = None
    remarks: Optional[str] = None
    result_file: Optional[FileRef] = None
    reviewed_by: Optional[UUID] = None
    review_date: Optional[datetime] = None


class OnboardingRecord(BaseModel):
    background_check_done: bool = False
    offer_letter_released: bool = False
    completed_date: Optional[datetime] = None
    completed_by: Optional[UUID] = None


class WorkflowStages(BaseModel):
    interview1_setup: Optional[InterviewSetupRecord] = None
    interview1: Optional[InterviewResultRecord] = None
    technical_test_setup: Optional[TechnicalTestSetupRecord] = None
    technical_test: Optional[TechnicalTestRecord] = None
    onboarding: Optional[OnboardingRecord] = None


class CandidateDetails(BaseModel):
    current_salary: Optional[float] = Field(None, ge=0)
    expected_salary: Optional[float] = Field(None, ge=0)
    notice_period: Optional[str] = Field(None, max_length=100)
    remarks: Optional[str] = None


# Transition payloads -------------------------------------------------------

class InterviewSetupPayload(BaseModel):
    panel_id: UUID
    scheduled_date: date
    time_slot_id: UUID
    meeting_link: Optional[str] = None

    @field_validator("meeting_link")
    @classmethod
    def validate_meeting_link(cls, v):
        return _check_http_url(v)


class InterviewResultPayload(BaseModel):
    result: InterviewOutcome
    remarks: str = Field(..., min_length=1)
    feedback_link: Optional[str] = None
    feedback_form: Optional[FileRef] = None

    @field_validator("remarks")
    @classmethod
    def remarks_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Remarks are required")
        return v

    @field_validator("feedback_link")
    @classmethod
    def validate_feedback_link(cls, v):
        return _check_http_url(v)


class TechnicalTestSetupPayload(BaseModel):
    test_paper: FileRef
    scheduled_date: datetime
    test_evaluators: List[UUID] = []
    notify_candidate: bool = False
    send_attachment_in_notification: bool = False


class TechnicalTestSubmitPayload(BaseModel):
    answer_sheet: FileRef
    assigned_reviewers: List[UUID] = Field(..., min_length=1)


class TechnicalTestResultPayload(BaseModel):
    result: InterviewOutcome
    remarks: str = Field(..., min_length=1)
    result_file: Optional[FileRef] = None

    @field_validator("remarks")
    @classmethod
    def remarks_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Remarks are required")
        return v


class OnboardingUpdatePayload(BaseModel):
    background_check_done: Optional[bool] = None
    offer_letter_released: Optional[bool] = None
    complete: bool = False


class CandidateDetailsUpdate(CandidateDetails):
    """Partial update; absent fields keep their stored value."""


class WorkflowCreate(BaseModel):
    """Created when an application is promoted into the pipeline."""

    application_id: UUID
    campaign_id: UUID
    candidate_name: str = Field(..., min_length=1, max_length=200)


class WorkflowRead(RecordRead):
    application_id: UUID
    campaign_id: UUID
    candidate_name: str
    current_stage: WorkflowStage
    next_activity_date: Optional[datetime] = None
    stages: WorkflowStages
    candidate_details: CandidateDetails
    version: int


WorkflowGroups = Dict[str, List[WorkflowRead]]

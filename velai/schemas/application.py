"""Application, invitation and interview schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class JobSpecificAnswers(BaseModel):
    """Free-form details captured when applying."""
    availability_date: Optional[str] = None
    salary_expectation: Optional[str] = None
    visa_status: Optional[str] = None
    motivation: Optional[str] = None


class ApplicationCreate(BaseModel):
    """Request to apply to a job."""
    applicant_id: UUID
    job_id: UUID
    resume_id: Optional[UUID] = None
    cover_letter_id: Optional[UUID] = None
    additional_document_ids: List[UUID] = Field(default_factory=list)
    custom_questions: Dict[str, Any] = Field(default_factory=dict)
    job_specific: JobSpecificAnswers = Field(default_factory=JobSpecificAnswers)
    cover_note: Optional[str] = Field(None, max_length=5000)


class InvitationCreate(BaseModel):
    job_id: UUID
    candidate_id: UUID
    note: Optional[str] = None


class ApplicantAction(BaseModel):
    """Candidate-initiated transition (accept, decline, withdraw)."""
    applicant_id: UUID
    reason: Optional[str] = Field(None, max_length=1000)


class StatusReason(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class DocumentReferences(BaseModel):
    applicant_id: UUID
    resume_id: Optional[UUID] = None
    cover_letter_id: Optional[UUID] = None
    additional_document_ids: List[UUID] = Field(default_factory=list)


class InterviewCreate(BaseModel):
    scheduled_at: datetime
    interview_type: str = "technical"
    format: str = "video"
    duration_minutes: int = Field(60, gt=0, le=480)
    interviewer_ref: Optional[str] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = None


class DirectInterviewCreate(InterviewCreate):
    """Interview invitation for a job/candidate pair without an application."""
    job_id: UUID
    candidate_id: UUID
    interview_type: str = "screening"
    duration_minutes: int = Field(30, gt=0, le=480)


class InterviewResponse(BaseModel):
    id: UUID
    application_id: Optional[UUID] = None
    job_id: UUID
    candidate_id: UUID
    interview_type: Optional[str] = None
    format: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: Optional[int] = None
    status: Optional[str] = None
    interviewer_ref: Optional[str] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ApplicationResponse(BaseModel):
    id: str
    job_id: str
    applicant_id: str
    status: str
    is_invitation: bool
    applied_date: Optional[str] = None
    updated_at: Optional[str] = None
    match_score: Optional[int] = None
    resume_id: Optional[str] = None
    cover_letter_id: Optional[str] = None
    additional_document_ids: List[str] = Field(default_factory=list)
    custom_questions: Dict[str, Any] = Field(default_factory=dict)
    job_specific: Dict[str, Any] = Field(default_factory=dict)
    cover_note: Optional[str] = None
    status_reason: Optional[str] = None
    rejected_at: Optional[str] = None
    withdrawn_at: Optional[str] = None
    status_history: List[Dict[str, Any]] = Field(default_factory=list)


class ScheduledInterviewResponse(BaseModel):
    application: ApplicationResponse
    interview: InterviewResponse


class JourneyStep(BaseModel):
    step: int
    name: str
    accessible: bool


class JourneyResponse(BaseModel):
    application_id: str
    status: str
    has_interviews: bool
    accessible_steps: int
    steps: List[JourneyStep]
    allowed_transitions: List[str]

"""
Applications API
Apply, invite, move applications through their lifecycle and read the journey
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from velai.api.deps import get_application_service
from velai.schemas.application import (
    ApplicantAction,
    ApplicationCreate,
    ApplicationResponse,
    DirectInterviewCreate,
    DocumentReferences,
    InterviewCreate,
    InterviewResponse,
    InvitationCreate,
    JourneyResponse,
    ScheduledInterviewResponse,
    StatusReason,
)
from velai.services.application_service import ApplicationService, application_to_dict

router = APIRouter()


@router.post("/applications", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    application_in: ApplicationCreate,
    service: ApplicationService = Depends(get_application_service),
):
    """
    Submit an application

    Rejects duplicates (409) and documents the applicant does not own (422).
    The match score is computed from the current profile and job.
    """
    application = await service.apply_to_job(
        applicant_id=application_in.applicant_id,
        job_id=application_in.job_id,
        resume_id=application_in.resume_id,
        cover_letter_id=application_in.cover_letter_id,
        additional_document_ids=application_in.additional_document_ids,
        custom_questions=application_in.custom_questions,
        job_specific=application_in.job_specific.model_dump(),
        cover_note=application_in.cover_note,
    )
    return application_to_dict(application)


@router.get("/applications", response_model=List[ApplicationResponse])
async def list_applications(
    applicant_id: UUID = Query(...),
    service: ApplicationService = Depends(get_application_service),
):
    """List an applicant's applications, newest first"""
    return await service.list_for_applicant(applicant_id)


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    service: ApplicationService = Depends(get_application_service),
):
    return application_to_dict(await service.get_application(application_id))


@router.get("/applications/{application_id}/journey", response_model=JourneyResponse)
async def get_journey(
    application_id: UUID,
    service: ApplicationService = Depends(get_application_service),
):
    """Status and accessible journey steps"""
    return await service.get_journey(application_id)


# Candidate actions (ownership checked against applicant_id)

@router.post("/applications/{application_id}/accept", response_model=ApplicationResponse)
async def accept_invitation(
    application_id: UUID,
    action: ApplicantAction,
    service: ApplicationService = Depends(get_application_service),
):
    return application_to_dict(await service.accept_invitation(application_id, action.applicant_id))


@router.post("/applications/{application_id}/decline", response_model=ApplicationResponse)
async def decline_invitation(
    application_id: UUID,
    action: ApplicantAction,
    service: ApplicationService = Depends(get_application_service),
):
    return application_to_dict(await service.decline_invitation(application_id, action.applicant_id, action.reason))


@router.post("/applications/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: UUID,
    action: ApplicantAction,
    service: ApplicationService = Depends(get_application_service),
):
    """Withdraw while applied or under review; refused once interviewing"""
    return application_to_dict(await service.withdraw(application_id, action.applicant_id, action.reason))


@router.put("/applications/{application_id}/documents", response_model=ApplicationResponse)
async def attach_documents(
    application_id: UUID,
    references: DocumentReferences,
    service: ApplicationService = Depends(get_application_service),
):
    application = await service.attach_documents(
        application_id,
        references.applicant_id,
        resume_id=references.resume_id,
        cover_letter_id=references.cover_letter_id,
        additional_document_ids=references.additional_document_ids,
    )
    return application_to_dict(application)


# Employer actions

@router.post("/applications/{application_id}/review", response_model=ApplicationResponse)
async def start_review(application_id: UUID, service: ApplicationService = Depends(get_application_service)):
    return application_to_dict(await service.start_review(application_id))


@router.post("/applications/{application_id}/offer", response_model=ApplicationResponse)
async def record_offer(application_id: UUID, service: ApplicationService = Depends(get_application_service)):
    return application_to_dict(await service.record_offer(application_id))


@router.post("/applications/{application_id}/hire", response_model=ApplicationResponse)
async def record_hire(application_id: UUID, service: ApplicationService = Depends(get_application_service)):
    return application_to_dict(await service.record_hire(application_id))


@router.post("/applications/{application_id}/reject", response_model=ApplicationResponse)
async def record_rejection(
    application_id: UUID,
    body: StatusReason,
    service: ApplicationService = Depends(get_application_service),
):
    return application_to_dict(await service.record_rejection(application_id, body.reason))


@router.post("/applications/{application_id}/visa", response_model=ApplicationResponse)
async def start_visa_processing(application_id: UUID, service: ApplicationService = Depends(get_application_service)):
    return application_to_dict(await service.start_visa_processing(application_id))


@router.post("/applications/{application_id}/onboarding", response_model=ApplicationResponse)
async def start_onboarding(application_id: UUID, service: ApplicationService = Depends(get_application_service)):
    return application_to_dict(await service.start_onboarding(application_id))


@router.post(
    "/applications/{application_id}/interviews",
    response_model=ScheduledInterviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def schedule_interview(
    application_id: UUID,
    interview_in: InterviewCreate,
    service: ApplicationService = Depends(get_application_service),
):
    application, interview = await service.schedule_interview(application_id, **interview_in.model_dump())
    return {
        "application": application_to_dict(application),
        "interview": InterviewResponse.model_validate(interview),
    }


@router.post("/invitations", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def invite_candidate(
    invitation: InvitationCreate,
    service: ApplicationService = Depends(get_application_service),
):
    """Invite a candidate to a job"""
    application = await service.invite_candidate(invitation.job_id, invitation.candidate_id, invitation.note)
    return application_to_dict(application)


@router.post("/interviews/direct", response_model=InterviewResponse, status_code=status.HTTP_201_CREATED)
async def create_direct_interview(
    interview_in: DirectInterviewCreate,
    service: ApplicationService = Depends(get_application_service),
):
    """Interview a candidate for a job without an application"""
    data = interview_in.model_dump()
    interview = await service.create_direct_interview(data.pop("job_id"), data.pop("candidate_id"), **data)
    return interview

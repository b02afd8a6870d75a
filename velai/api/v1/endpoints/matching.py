"""
Matching API
Score a candidate profile against job requirements
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from velai.api.deps import get_application_service
from velai.schemas.matching import MatchScoreRequest, MatchScoreResponse
from velai.services.application_service import ApplicationService
from velai.services.matching_service import (
    CandidateProfile,
    JobMeta,
    compute_match_score,
    match_label,
    score_breakdown,
)

router = APIRouter()


@router.post("/score", response_model=MatchScoreResponse)
async def score_match(request: MatchScoreRequest):
    """Score an ad-hoc candidate/job pair (nothing is stored)"""
    candidate = request.candidate
    job = request.job
    profile = CandidateProfile(
        experience_years=candidate.experience_years,
        current_location=candidate.current_location,
        languages=candidate.languages,
        target_salary_range=candidate.target_salary_range.model_dump() if candidate.target_salary_range else None,
        willing_to_relocate=candidate.willing_to_relocate,
    )
    meta = JobMeta(
        experience_level=job.experience_level,
        location=job.location,
        preferred_language=job.preferred_language,
        salary_range=job.salary_range.model_dump() if job.salary_range else None,
    )

    score = compute_match_score(candidate.skills, profile, job.skills_required, meta)
    return {
        "score": score,
        "label": match_label(score),
        "breakdown": score_breakdown(candidate.skills, profile, job.skills_required, meta),
    }


@router.get("/applications/{application_id}", response_model=MatchScoreResponse)
async def application_match(
    application_id: UUID,
    service: ApplicationService = Depends(get_application_service),
):
    """Recompute an application's score from the live profile and job"""
    return await service.match_details(application_id)

"""
Application Service
Applying, inviting, status transitions, interviews and the candidate journey

Every status change goes through one of the named operations below, which
resolve the target status with ``application_lifecycle.next_status`` and
record the change in ``status_history``. Mutations commit and then purge the
applicant's cached read models.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from velai.config import settings
from velai.core.cache import CacheManager, owner_key
from velai.core.exceptions import ConflictError, NotFoundError, ValidationError
from velai.db.base import utcnow
from velai.models.application import Application
from velai.models.candidate import Candidate
from velai.models.document import Document
from velai.models.interview import Interview
from velai.models.job import Job
from velai.utils.constants import INTERVIEW_FORMATS
from velai.utils.helpers import unique_ids

from .application_lifecycle import (
    AUDITED_TRANSITIONS,
    JOURNEY_STEPS,
    ApplicationStatus,
    Transition,
    accessible_steps,
    allowed_transitions,
    next_status,
    normalize_status,
)
from .matching_service import CandidateProfile, JobMeta, match_label, score_breakdown, score_candidate_for_job

logger = logging.getLogger(__name__)


def _as_uuid(value: Any, field: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}") from None


def application_to_dict(application: Application) -> Dict[str, Any]:
    """JSON-safe view of an application row."""
    return {
        "id": str(application.id),
        "job_id": str(application.job_id),
        "applicant_id": str(application.applicant_id),
        "status": normalize_status(application.status).value,
        "is_invitation": bool(application.is_invitation),
        "applied_date": application.applied_date.isoformat() if application.applied_date else None,
        "updated_at": application.updated_at.isoformat() if application.updated_at else None,
        "match_score": application.match_score,
        "resume_id": str(application.resume_id) if application.resume_id else None,
        "cover_letter_id": str(application.cover_letter_id) if application.cover_letter_id else None,
        "additional_document_ids": list(application.additional_document_ids or []),
        "custom_questions": application.custom_questions or {},
        "job_specific": application.job_specific or {},
        "cover_note": application.cover_note,
        "status_reason": application.status_reason,
        "rejected_at": application.rejected_at.isoformat() if application.rejected_at else None,
        "withdrawn_at": application.withdrawn_at.isoformat() if application.withdrawn_at else None,
        "status_history": list(application.status_history or []),
    }


class ApplicationService:
    """Application lifecycle operations for one database session."""

    def __init__(self, db: AsyncSession, cache: Optional[CacheManager] = None):
        self.db = db
        self.cache = cache

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def get_application(self, application_id: Any) -> Application:
        app_uuid = _as_uuid(application_id, "application id")
        result = await self.db.execute(select(Application).where(Application.id == app_uuid))
        application = result.scalar_one_or_none()
        if not application:
            raise NotFoundError(f"Application {application_id} not found")
        return application

    async def _get_owned(self, application_id: Any, applicant_id: Any) -> Application:
        """Load an application the acting applicant owns; others look like missing rows."""
        application = await self.get_application(application_id)
        if application.applicant_id != _as_uuid(applicant_id, "applicant id"):
            logger.warning(f"Applicant {applicant_id} tried to act on application {application_id}")
            raise NotFoundError(f"Application {application_id} not found")
        return application

    async def _get_job(self, job_id: Any) -> Job:
        result = await self.db.execute(select(Job).where(Job.id == _as_uuid(job_id, "job id")))
        job = result.scalar_one_or_none()
        if not job:
            raise NotFoundError(f"Job {job_id} not found")
        return job

    async def _get_candidate(self, candidate_id: Any) -> Candidate:
        result = await self.db.execute(select(Candidate).where(Candidate.id == _as_uuid(candidate_id, "candidate id")))
        candidate = result.scalar_one_or_none()
        if not candidate:
            raise NotFoundError(f"Candidate {candidate_id} not found")
        return candidate

    def _invalidate(self, applicant_id: Any) -> None:
        if self.cache:
            self.cache.invalidate_owner(applicant_id)

    async def _commit(self, *instances) -> None:
        await self.db.commit()
        for instance in instances:
            await self.db.refresh(instance)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def _apply_transition(self, application: Application, transition: Transition, reason: Optional[str] = None) -> ApplicationStatus:
        """Move ``application`` along ``transition`` in memory. Raises InvalidTransitionError."""
        previous = normalize_status(application.status)
        target = next_status(transition, previous)
        now = utcnow()

        application.status = target.value
        application.updated_at = now
        application.status_history = [
            *(application.status_history or []),
            {"from": previous.value, "to": target.value, "at": now.isoformat(), "reason": reason},
        ]

        if transition in AUDITED_TRANSITIONS:
            application.status_reason = reason
            if target is ApplicationStatus.WITHDRAWN:
                application.withdrawn_at = now
            elif target is ApplicationStatus.REJECTED:
                application.rejected_at = now

        logger.info(f"Application {application.id}: {previous.value} -> {target.value} ({transition.value})")
        return target

    async def _transition(self, application: Application, transition: Transition, reason: Optional[str] = None) -> Application:
        self._apply_transition(application, transition, reason)
        await self._commit(application)
        self._invalidate(application.applicant_id)
        return application

    async def accept_invitation(self, application_id: Any, applicant_id: Any) -> Application:
        application = await self._get_owned(application_id, applicant_id)
        return await self._transition(application, Transition.ACCEPT_INVITATION)

    async def decline_invitation(self, application_id: Any, applicant_id: Any, reason: Optional[str] = None) -> Application:
        application = await self._get_owned(application_id, applicant_id)
        return await self._transition(application, Transition.DECLINE_INVITATION, reason)

    async def withdraw(self, application_id: Any, applicant_id: Any, reason: Optional[str] = None) -> Application:
        application = await self._get_owned(application_id, applicant_id)
        return await self._transition(application, Transition.WITHDRAW, reason or "Withdrawn by candidate")

    async def start_review(self, application_id: Any) -> Application:
        application = await self.get_application(application_id)
        return await self._transition(application, Transition.START_REVIEW)

    async def record_offer(self, application_id: Any) -> Application:
        application = await self.get_application(application_id)
        return await self._transition(application, Transition.RECORD_OFFER)

    async def record_hire(self, application_id: Any) -> Application:
        application = await self.get_application(application_id)
        return await self._transition(application, Transition.RECORD_HIRE)

    async def record_rejection(self, application_id: Any, reason: Optional[str] = None) -> Application:
        application = await self.get_application(application_id)
        return await self._transition(application, Transition.RECORD_REJECTION, reason)

    async def start_visa_processing(self, application_id: Any) -> Application:
        application = await self.get_application(application_id)
        return await self._transition(application, Transition.START_VISA_PROCESSING)

    async def start_onboarding(self, application_id: Any) -> Application:
        application = await self.get_application(application_id)
        return await self._transition(application, Transition.START_ONBOARDING)

    # ------------------------------------------------------------------
    # Interviews
    # ------------------------------------------------------------------

    @staticmethod
    def _new_interview(
        job_id: uuid.UUID,
        candidate_id: uuid.UUID,
        application_id: Optional[uuid.UUID],
        scheduled_at: datetime,
        interview_type: str,
        format: str,
        duration_minutes: int,
        interviewer_ref: Optional[str],
        meeting_link: Optional[str],
        notes: Optional[str],
    ) -> Interview:
        if scheduled_at is None:
            raise ValidationError("Interview time is required")
        if format not in INTERVIEW_FORMATS:
            raise ValidationError(f"Invalid interview format '{format}'. Allowed: {', '.join(INTERVIEW_FORMATS)}")
        if duration_minutes is None or duration_minutes <= 0:
            raise ValidationError("Interview duration must be positive")
        if scheduled_at.tzinfo is not None:
            scheduled_at = scheduled_at.astimezone(timezone.utc).replace(tzinfo=None)

        return Interview(
            application_id=application_id,
            job_id=job_id,
            candidate_id=candidate_id,
            scheduled_at=scheduled_at,
            interview_type=interview_type,
            format=format,
            duration_minutes=duration_minutes,
            status="scheduled",
            interviewer_ref=interviewer_ref,
            meeting_link=meeting_link,
            notes=notes,
        )

    async def schedule_interview(
        self,
        application_id: Any,
        scheduled_at: datetime,
        interview_type: str = "technical",
        format: str = "video",
        duration_minutes: int = 60,
        interviewer_ref: Optional[str] = None,
        meeting_link: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Tuple[Application, Interview]:
        """Create an interview for the application and move it to interviewing."""
        application = await self.get_application(application_id)
        interview = self._new_interview(
            application.job_id,
            application.applicant_id,
            application.id,
            scheduled_at,
            interview_type,
            format,
            duration_minutes,
            interviewer_ref,
            meeting_link,
            notes,
        )
        self._apply_transition(application, Transition.SCHEDULE_INTERVIEW)
        self.db.add(interview)
        await self._commit(application, interview)
        self._invalidate(application.applicant_id)
        return application, interview

    async def create_direct_interview(
        self,
        job_id: Any,
        candidate_id: Any,
        scheduled_at: datetime,
        interview_type: str = "screening",
        format: str = "video",
        duration_minutes: int = 30,
        interviewer_ref: Optional[str] = None,
        meeting_link: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Interview:
        """
        Interview invitation without an application row.

        The interview is tied to the job/candidate pair only. An accepted
        invitation for the same pair counts it when deciding journey steps,
        without any status change.
        """
        job = await self._get_job(job_id)
        candidate = await self._get_candidate(candidate_id)
        interview = self._new_interview(
            job.id,
            candidate.id,
            None,
            scheduled_at,
            interview_type,
            format,
            duration_minutes,
            interviewer_ref,
            meeting_link,
            notes,
        )
        self.db.add(interview)
        await self._commit(interview)
        self._invalidate(candidate.id)
        logger.info(f"Direct interview {interview.id} created for candidate {candidate.id} on job {job.id}")
        return interview

    async def has_interviews(self, application: Application) -> bool:
        """
        Whether any non-cancelled interview exists for the application, or a
        direct one for its job/candidate pair.
        """
        query = select(
            exists().where(
                Interview.status != "cancelled",
                or_(
                    Interview.application_id == application.id,
                    and_(
                        Interview.application_id.is_(None),
                        Interview.job_id == application.job_id,
                        Interview.candidate_id == application.applicant_id,
                    ),
                ),
            )
        )
        result = await self.db.execute(query)
        return bool(result.scalar())

    # ------------------------------------------------------------------
    # Creating applications
    # ------------------------------------------------------------------

    async def apply_to_job(
        self,
        applicant_id: Any,
        job_id: Any,
        resume_id: Any = None,
        cover_letter_id: Any = None,
        additional_document_ids: Optional[List[Any]] = None,
        custom_questions: Optional[Dict[str, Any]] = None,
        job_specific: Optional[Dict[str, Any]] = None,
        cover_note: Optional[str] = None,
    ) -> Application:
        """Submit a candidate's application with a freshly computed match score."""
        if not applicant_id or not job_id:
            raise ValidationError("Job ID and Applicant ID are required")

        candidate = await self._get_candidate(applicant_id)
        job = await self._get_job(job_id)
        if not job.is_active:
            raise ValidationError("This job is no longer accepting applications")

        await self._ensure_not_applied(candidate.id, job.id)
        documents = await self._validated_documents(candidate.id, resume_id, cover_letter_id, additional_document_ids)

        application = Application(
            job_id=job.id,
            applicant_id=candidate.id,
            status=ApplicationStatus.APPLIED.value,
            is_invitation=False,
            applied_date=utcnow(),
            match_score=score_candidate_for_job(candidate, job),
            custom_questions=dict(custom_questions or {}),
            job_specific=dict(job_specific or {}),
            cover_note=cover_note,
            status_history=[],
            **documents,
        )
        return await self._insert_application(application)

    async def invite_candidate(self, job_id: Any, candidate_id: Any, note: Optional[str] = None) -> Application:
        """Employer invites a candidate to a job; the candidate accepts or declines."""
        candidate = await self._get_candidate(candidate_id)
        job = await self._get_job(job_id)
        await self._ensure_not_applied(candidate.id, job.id)

        application = Application(
            job_id=job.id,
            applicant_id=candidate.id,
            status=ApplicationStatus.INVITED.value,
            is_invitation=True,
            applied_date=utcnow(),
            match_score=score_candidate_for_job(candidate, job),
            cover_note=note,
            status_history=[],
            additional_document_ids=[],
        )
        return await self._insert_application(application)

    async def _ensure_not_applied(self, applicant_id: uuid.UUID, job_id: uuid.UUID) -> None:
        result = await self.db.execute(
            select(Application.id).where(
                Application.applicant_id == applicant_id,
                Application.job_id == job_id,
            )
        )
        if result.first() is not None:
            raise ConflictError("You have already applied for this job")

    async def _insert_application(self, application: Application) -> Application:
        self.db.add(application)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Duplicate application rejected: {e}")
            raise ConflictError("You have already applied for this job") from e
        await self.db.refresh(application)
        self._invalidate(application.applicant_id)
        logger.info(f"Application {application.id} created ({application.status}, match {application.match_score})")
        return application

    # ------------------------------------------------------------------
    # Documents and scores
    # ------------------------------------------------------------------

    async def _validated_documents(
        self,
        applicant_id: uuid.UUID,
        resume_id: Any,
        cover_letter_id: Any,
        additional_document_ids: Optional[List[Any]],
    ) -> Dict[str, Any]:
        """Check every referenced document exists and belongs to the applicant."""
        resume = _as_uuid(resume_id, "resume id") if resume_id else None
        cover_letter = _as_uuid(cover_letter_id, "cover letter id") if cover_letter_id else None
        additional = [_as_uuid(doc_id, "document id") for doc_id in unique_ids(additional_document_ids)]

        wanted = {doc_id for doc_id in [resume, cover_letter, *additional] if doc_id}
        if wanted:
            # Only id/owner_id: the documents table may predate newer columns
            result = await self.db.execute(
                select(Document.id, Document.owner_id).where(Document.id.in_(wanted))
            )
            owners = {row.id: row.owner_id for row in result.all()}
            missing = [str(doc_id) for doc_id in wanted if doc_id not in owners]
            if missing:
                raise NotFoundError(f"Documents not found: {', '.join(sorted(missing))}")
            foreign = [str(doc_id) for doc_id, owner in owners.items() if owner != applicant_id]
            if foreign:
                raise ValidationError("Documents must belong to the applicant")

        return {
            "resume_id": resume,
            "cover_letter_id": cover_letter,
            "additional_document_ids": [str(doc_id) for doc_id in additional],
        }

    async def attach_documents(
        self,
        application_id: Any,
        applicant_id: Any,
        resume_id: Any = None,
        cover_letter_id: Any = None,
        additional_document_ids: Optional[List[Any]] = None,
    ) -> Application:
        """Replace the application's document references."""
        application = await self._get_owned(application_id, applicant_id)
        documents = await self._validated_documents(
            application.applicant_id, resume_id, cover_letter_id, additional_document_ids
        )
        for field, value in documents.items():
            setattr(application, field, value)
        application.updated_at = utcnow()
        await self._commit(application)
        self._invalidate(application.applicant_id)
        return application

    async def refresh_match_score(self, application_id: Any) -> int:
        """Recompute the cached match score from the live profile and job."""
        application = await self.get_application(application_id)
        candidate = await self._get_candidate(application.applicant_id)
        job = await self._get_job(application.job_id)

        score = score_candidate_for_job(candidate, job)
        if score != application.match_score:
            application.match_score = score
            await self._commit(application)
            self._invalidate(application.applicant_id)
        return score

    async def match_details(self, application_id: Any) -> Dict[str, Any]:
        """Refreshed score plus its per-component breakdown."""
        score = await self.refresh_match_score(application_id)
        application = await self.get_application(application_id)
        candidate = await self._get_candidate(application.applicant_id)
        job = await self._get_job(application.job_id)
        return {
            "score": score,
            "label": match_label(score),
            "breakdown": score_breakdown(
                candidate.skills or [],
                CandidateProfile.from_candidate(candidate),
                job.skills_required or [],
                JobMeta.from_job(job),
            ),
        }

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    async def get_journey(self, application_id: Any) -> Dict[str, Any]:
        """Status and reachable journey steps for the candidate's journey page."""
        application = await self.get_application(application_id)
        status = normalize_status(application.status)
        interviews = await self.has_interviews(application)
        steps = accessible_steps(status, interviews)
        return {
            "application_id": str(application.id),
            "status": status.value,
            "has_interviews": interviews,
            "accessible_steps": steps,
            "steps": [
                {"step": number, "name": name, "accessible": number <= steps}
                for number, name in JOURNEY_STEPS.items()
            ],
            "allowed_transitions": [t.value for t in allowed_transitions(status)],
        }

    async def _load_for_applicant(self, applicant_uuid: uuid.UUID) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Application)
            .where(Application.applicant_id == applicant_uuid)
            .order_by(Application.applied_date.desc())
        )
        return [application_to_dict(app) for app in result.scalars().all()]

    async def list_for_applicant(self, applicant_id: Any) -> List[Dict[str, Any]]:
        """Applicant's applications, newest first."""
        applicant_uuid = _as_uuid(applicant_id, "applicant id")

        async def loader():
            return await self._load_for_applicant(applicant_uuid)

        if self.cache:
            return await self.cache.get_or_load(
                owner_key("applications", applicant_uuid), loader, settings.CACHE_APPLICATIONS_TTL
            )
        return await loader()

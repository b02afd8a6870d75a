"""Service tests for applications, invitations, interviews and journeys."""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from velai.core.exceptions import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from velai.models.interview import Interview
from velai.services.application_service import ApplicationService, application_to_dict


@pytest.fixture
def service(db_session):
    return ApplicationService(db_session)


@pytest.fixture
def interview_time():
    return datetime(2026, 11, 3, 10, 30, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_apply_to_job_creates_applied_row_with_score(service, make_candidate, make_job, make_document):
    candidate = await make_candidate()
    job = await make_job()
    resume = await make_document(candidate.id)

    application = await service.apply_to_job(
        candidate.id,
        job.id,
        resume_id=resume.id,
        job_specific={"availability_date": "2026-12-01", "visa_status": "needs_sponsorship"},
        cover_note="Happy to relocate",
    )

    assert application.status == "applied"
    assert application.is_invitation is False
    assert application.resume_id == resume.id
    assert application.cover_letter_id is None
    assert application.job_specific["visa_status"] == "needs_sponsorship"
    assert 0 <= application.match_score <= 100


@pytest.mark.asyncio
async def test_apply_twice_is_a_conflict(service, make_candidate, make_job):
    candidate = await make_candidate()
    job = await make_job()
    await service.apply_to_job(candidate.id, job.id)

    with pytest.raises(ConflictError, match="already applied"):
        await service.apply_to_job(candidate.id, job.id)


@pytest.mark.asyncio
async def test_apply_requires_ids(service):
    with pytest.raises(ValidationError):
        await service.apply_to_job(None, uuid.uuid4())


@pytest.mark.asyncio
async def test_apply_to_inactive_job_is_rejected(service, make_candidate, make_job):
    candidate = await make_candidate()
    job = await make_job(is_active=False)

    with pytest.raises(ValidationError, match="no longer accepting"):
        await service.apply_to_job(candidate.id, job.id)


@pytest.mark.asyncio
async def test_apply_to_unknown_job(service, make_candidate):
    candidate = await make_candidate()
    with pytest.raises(NotFoundError):
        await service.apply_to_job(candidate.id, uuid.uuid4())


@pytest.mark.asyncio
async def test_apply_with_someone_elses_document(service, make_candidate, make_job, make_document):
    candidate = await make_candidate()
    other = await make_candidate(full_name="Someone Else")
    job = await make_job()
    foreign_resume = await make_document(other.id)

    with pytest.raises(ValidationError, match="belong to the applicant"):
        await service.apply_to_job(candidate.id, job.id, resume_id=foreign_resume.id)


@pytest.mark.asyncio
async def test_apply_with_missing_document(service, make_candidate, make_job):
    candidate = await make_candidate()
    job = await make_job()

    with pytest.raises(NotFoundError, match="Documents not found"):
        await service.apply_to_job(candidate.id, job.id, additional_document_ids=[uuid.uuid4()])


@pytest.mark.asyncio
async def test_withdraw_then_withdraw_again(service, make_candidate, make_job):
    candidate = await make_candidate()
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)

    withdrawn = await service.withdraw(application.id, candidate.id)
    assert withdrawn.status == "withdrawn"
    assert withdrawn.status_reason == "Withdrawn by candidate"
    assert withdrawn.withdrawn_at is not None
    assert withdrawn.status_history[-1]["from"] == "applied"
    assert withdrawn.status_history[-1]["to"] == "withdrawn"

    with pytest.raises(InvalidTransitionError):
        await service.withdraw(application.id, candidate.id)

    reloaded = await service.get_application(application.id)
    assert reloaded.status == "withdrawn"
    assert len(reloaded.status_history) == 1


@pytest.mark.asyncio
async def test_withdraw_after_interview_is_refused(service, make_candidate, make_job, interview_time):
    candidate = await make_candidate()
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)
    await service.schedule_interview(application.id, interview_time)

    with pytest.raises(InvalidTransitionError, match="interviewing"):
        await service.withdraw(application.id, candidate.id)


@pytest.mark.asyncio
async def test_only_the_applicant_can_withdraw(service, make_candidate, make_job):
    candidate = await make_candidate()
    stranger = await make_candidate(full_name="Stranger")
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)

    with pytest.raises(NotFoundError):
        await service.withdraw(application.id, stranger.id)

    assert (await service.get_application(application.id)).status == "applied"


@pytest.mark.asyncio
async def test_invitation_journey_unlocks_with_direct_interview(service, make_candidate, make_job, interview_time):
    candidate = await make_candidate()
    job = await make_job()

    invitation = await service.invite_candidate(job.id, candidate.id, note="We liked your profile")
    assert invitation.status == "invited"
    assert invitation.is_invitation is True

    accepted = await service.accept_invitation(invitation.id, candidate.id)
    assert accepted.status == "accepted"

    journey = await service.get_journey(invitation.id)
    assert journey["accessible_steps"] == 1
    assert journey["has_interviews"] is False

    interview = await service.create_direct_interview(job.id, candidate.id, interview_time)
    assert interview.application_id is None

    journey = await service.get_journey(invitation.id)
    assert journey["status"] == "accepted"
    assert journey["has_interviews"] is True
    assert journey["accessible_steps"] == 2
    assert [step["accessible"] for step in journey["steps"]] == [True, True, False, False, False, False]


@pytest.mark.asyncio
async def test_cancelled_interviews_do_not_unlock_steps(service, db_session, make_candidate, make_job, interview_time):
    candidate = await make_candidate()
    job = await make_job()
    invitation = await service.invite_candidate(job.id, candidate.id)
    await service.accept_invitation(invitation.id, candidate.id)

    interview = await service.create_direct_interview(job.id, candidate.id, interview_time)
    interview.status = "cancelled"
    await db_session.commit()

    journey = await service.get_journey(invitation.id)
    assert journey["accessible_steps"] == 1


@pytest.mark.asyncio
async def test_invited_stays_locked_with_interview(service, make_candidate, make_job, interview_time):
    candidate = await make_candidate()
    job = await make_job()
    invitation = await service.invite_candidate(job.id, candidate.id)
    await service.create_direct_interview(job.id, candidate.id, interview_time)

    journey = await service.get_journey(invitation.id)
    assert journey["status"] == "invited"
    assert journey["accessible_steps"] == 1
    assert journey["allowed_transitions"] == ["accept_invitation", "decline_invitation"]


@pytest.mark.asyncio
async def test_decline_invitation_is_terminal(service, make_candidate, make_job):
    candidate = await make_candidate()
    job = await make_job()
    invitation = await service.invite_candidate(job.id, candidate.id)

    declined = await service.decline_invitation(invitation.id, candidate.id, reason="Not relocating this year")
    assert declined.status == "declined"

    with pytest.raises(InvalidTransitionError):
        await service.accept_invitation(invitation.id, candidate.id)


@pytest.mark.asyncio
async def test_invite_after_application_is_a_conflict(service, make_candidate, make_job):
    candidate = await make_candidate()
    job = await make_job()
    await service.apply_to_job(candidate.id, job.id)

    with pytest.raises(ConflictError):
        await service.invite_candidate(job.id, candidate.id)


@pytest.mark.asyncio
async def test_schedule_interview_moves_to_interviewing(service, make_candidate, make_job, interview_time):
    candidate = await make_candidate()
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)

    application, interview = await service.schedule_interview(
        application.id,
        interview_time,
        format="onsite",
        duration_minutes=45,
        meeting_link=None,
        notes="Office visit",
    )

    assert application.status == "interviewing"
    assert isinstance(interview, Interview)
    assert interview.application_id == application.id
    assert interview.candidate_id == candidate.id
    assert interview.status == "scheduled"
    assert interview.scheduled_at == interview_time.replace(tzinfo=None)

    journey = await service.get_journey(application.id)
    assert journey["accessible_steps"] == 2


@pytest.mark.asyncio
async def test_schedule_interview_converts_offsets_to_utc(service, make_candidate, make_job):
    candidate = await make_candidate()
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)
    berlin_time = datetime(2026, 11, 3, 11, 30, tzinfo=timezone(timedelta(hours=1)))

    _, interview = await service.schedule_interview(application.id, berlin_time)

    assert interview.scheduled_at == datetime(2026, 11, 3, 10, 30)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"format": "hologram"}, "Invalid interview format"),
        ({"duration_minutes": 0}, "duration"),
    ],
)
async def test_schedule_interview_validation(service, make_candidate, make_job, interview_time, kwargs, message):
    candidate = await make_candidate()
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)

    with pytest.raises(ValidationError, match=message):
        await service.schedule_interview(application.id, interview_time, **kwargs)

    assert (await service.get_application(application.id)).status == "applied"


@pytest.mark.asyncio
async def test_full_forward_lifecycle(service, make_candidate, make_job, interview_time):
    candidate = await make_candidate()
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)

    await service.start_review(application.id)
    await service.schedule_interview(application.id, interview_time)
    await service.record_offer(application.id)
    assert (await service.get_journey(application.id))["accessible_steps"] == 4

    await service.record_hire(application.id)
    assert (await service.get_journey(application.id))["accessible_steps"] == 3

    await service.start_visa_processing(application.id)
    onboarding = await service.start_onboarding(application.id)

    assert onboarding.status == "onboarding"
    assert [entry["to"] for entry in onboarding.status_history] == [
        "reviewing",
        "interviewing",
        "offer_received",
        "hired",
        "visa_processing",
        "onboarding",
    ]
    journey = await service.get_journey(application.id)
    assert journey["accessible_steps"] == 6
    assert journey["allowed_transitions"] == []


@pytest.mark.asyncio
async def test_record_rejection_keeps_audit_fields(service, make_candidate, make_job):
    candidate = await make_candidate()
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)
    await service.start_review(application.id)

    rejected = await service.record_rejection(application.id, reason="Position filled")

    assert rejected.status == "rejected"
    assert rejected.status_reason == "Position filled"
    assert rejected.rejected_at is not None
    assert rejected.withdrawn_at is None

    with pytest.raises(InvalidTransitionError):
        await service.start_review(application.id)


@pytest.mark.asyncio
async def test_attach_documents_replaces_references(service, make_candidate, make_job, make_document):
    candidate = await make_candidate()
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)
    resume = await make_document(candidate.id)
    letter = await make_document(candidate.id, document_type="cover_letter")
    certificate = await make_document(candidate.id, document_type="certificate")

    updated = await service.attach_documents(
        application.id,
        candidate.id,
        resume_id=str(resume.id),
        cover_letter_id=letter.id,
        additional_document_ids=[certificate.id, str(certificate.id), None],
    )

    assert updated.resume_id == resume.id
    assert updated.cover_letter_id == letter.id
    assert updated.additional_document_ids == [str(certificate.id)]

    data = application_to_dict(updated)
    assert data["resume_id"] == str(resume.id)
    assert data["additional_document_ids"] == [str(certificate.id)]


@pytest.mark.asyncio
async def test_refresh_match_score_follows_profile(service, db_session, make_candidate, make_job):
    candidate = await make_candidate(skills=["Python"])
    job = await make_job()
    application = await service.apply_to_job(candidate.id, job.id)
    before = application.match_score

    candidate.skills = ["React", "Node.js", "Docker"]
    await db_session.commit()

    after = await service.refresh_match_score(application.id)
    assert after > before
    assert (await service.get_application(application.id)).match_score == after

    details = await service.match_details(application.id)
    assert details["score"] == after
    assert details["breakdown"]["skills"] == 100
    assert details["label"]


@pytest.mark.asyncio
async def test_list_for_applicant_newest_first(service, make_candidate, make_job):
    candidate = await make_candidate()
    first_job = await make_job(title="Backend Developer")
    second_job = await make_job(title="Frontend Developer")

    first = await service.apply_to_job(candidate.id, first_job.id)
    second = await service.apply_to_job(candidate.id, second_job.id)
    first.applied_date = second.applied_date - timedelta(days=1)
    await service.db.commit()

    listed = await service.list_for_applicant(candidate.id)
    assert [item["id"] for item in listed] == [str(second.id), str(first.id)]
    assert all(item["status"] == "applied" for item in listed)


@pytest.mark.asyncio
async def test_mutations_invalidate_the_applicants_cache(db_session, make_candidate, make_job):
    async def passthrough(key, loader, ttl):
        return await loader()

    cache = MagicMock()
    cache.get_or_load = AsyncMock(side_effect=passthrough)
    service = ApplicationService(db_session, cache=cache)
    candidate = await make_candidate()
    job = await make_job()

    application = await service.apply_to_job(candidate.id, job.id)
    await service.withdraw(application.id, candidate.id)

    assert cache.invalidate_owner.call_count == 2
    cache.invalidate_owner.assert_called_with(candidate.id)

    await service.list_for_applicant(candidate.id)
    key = cache.get_or_load.call_args.args[0]
    assert key == f"owner:{candidate.id}:applications"


@pytest.mark.asyncio
async def test_unknown_application(service):
    with pytest.raises(NotFoundError):
        await service.get_journey(uuid.uuid4())
    with pytest.raises(ValidationError):
        await service.get_application("not-a-uuid")

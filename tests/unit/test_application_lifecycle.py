"""Unit tests for the application status machine and journey steps."""

import pytest

from velai.core.exceptions import InvalidTransitionError, ValidationError
from velai.services.application_lifecycle import (
    ApplicationStatus,
    TERMINAL_STATUSES,
    TRANSITIONS,
    Transition,
    accessible_steps,
    allowed_transitions,
    is_step_accessible,
    is_terminal,
    next_status,
    normalize_status,
)

S = ApplicationStatus


@pytest.mark.parametrize(
    "status, has_interviews, expected",
    [
        (S.APPLIED, False, 1),
        (S.APPLIED, True, 1),
        (S.REVIEWING, True, 1),
        (S.INVITED, False, 1),
        (S.INVITED, True, 1),
        (S.ACCEPTED, False, 1),
        (S.ACCEPTED, True, 2),
        (S.INTERVIEWING, False, 2),
        (S.HIRED, False, 3),
        (S.OFFER_RECEIVED, False, 4),
        (S.VISA_PROCESSING, False, 5),
        (S.ONBOARDING, False, 6),
        (S.REJECTED, True, 1),
        (S.DECLINED, True, 1),
        (S.WITHDRAWN, False, 1),
    ],
)
def test_accessible_steps_table(status, has_interviews, expected):
    assert accessible_steps(status, has_interviews) == expected


def test_invited_stays_locked_even_with_interviews():
    assert accessible_steps("invited", True) == 1
    assert not is_step_accessible(2, "invited", True)


def test_accepted_unlocks_interview_step_once_interview_exists():
    assert accessible_steps(S.ACCEPTED, has_interviews=False) == 1
    assert accessible_steps(S.ACCEPTED, has_interviews=True) == 2
    assert is_step_accessible(2, S.ACCEPTED, True)


def test_every_status_has_a_step_count():
    for status in ApplicationStatus:
        assert 1 <= accessible_steps(status, False) <= 6


def test_is_step_accessible_rejects_unknown_steps():
    assert not is_step_accessible(0, S.ONBOARDING, True)
    assert not is_step_accessible(7, S.ONBOARDING, True)
    assert is_step_accessible(6, S.ONBOARDING, False)


def test_legacy_statuses_are_normalized():
    assert normalize_status("under_review") is S.REVIEWING
    assert normalize_status("interview_scheduled") is S.INTERVIEWING
    assert normalize_status("offered") is S.OFFER_RECEIVED
    assert normalize_status(" Applied ") is S.APPLIED
    assert accessible_steps("offered", False) == 4


def test_unknown_status_raises_validation_error():
    with pytest.raises(ValidationError):
        normalize_status("shortlisted")


def test_withdraw_from_applied_then_again_fails():
    status = next_status(Transition.WITHDRAW, S.APPLIED)
    assert status is S.WITHDRAWN

    with pytest.raises(InvalidTransitionError) as exc_info:
        next_status(Transition.WITHDRAW, status)
    assert exc_info.value.current_status == "withdrawn"
    assert "already withdrawn" in exc_info.value.message


def test_withdraw_not_allowed_once_interviewing():
    with pytest.raises(InvalidTransitionError) as exc_info:
        next_status(Transition.WITHDRAW, S.INTERVIEWING)
    assert "interviewing" in exc_info.value.message
    assert exc_info.value.status_code == 409


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
def test_no_transition_leaves_a_terminal_state(terminal):
    assert is_terminal(terminal)
    assert allowed_transitions(terminal) == []
    for transition in Transition:
        with pytest.raises(InvalidTransitionError):
            next_status(transition, terminal)


def test_onboarding_has_no_outgoing_transition():
    assert allowed_transitions(S.ONBOARDING) == []
    assert not is_terminal(S.ONBOARDING)


def test_forward_lifecycle():
    status = S.APPLIED
    for transition in (
        Transition.START_REVIEW,
        Transition.SCHEDULE_INTERVIEW,
        Transition.RECORD_OFFER,
        Transition.RECORD_HIRE,
        Transition.START_VISA_PROCESSING,
        Transition.START_ONBOARDING,
    ):
        status = next_status(transition, status)
    assert status is S.ONBOARDING


def test_invitation_branch():
    assert next_status(Transition.ACCEPT_INVITATION, S.INVITED) is S.ACCEPTED
    assert next_status(Transition.DECLINE_INVITATION, S.INVITED) is S.DECLINED
    assert next_status(Transition.SCHEDULE_INTERVIEW, S.ACCEPTED) is S.INTERVIEWING

    with pytest.raises(InvalidTransitionError):
        next_status(Transition.ACCEPT_INVITATION, S.APPLIED)


def test_rejection_sources():
    sources, target = TRANSITIONS[Transition.RECORD_REJECTION]
    assert target is S.REJECTED
    assert sources == {S.APPLIED, S.REVIEWING, S.INTERVIEWING}
    with pytest.raises(InvalidTransitionError):
        next_status(Transition.RECORD_REJECTION, S.HIRED)


def test_transitions_never_move_backwards():
    forward = [S.APPLIED, S.REVIEWING, S.INTERVIEWING, S.OFFER_RECEIVED, S.HIRED, S.VISA_PROCESSING, S.ONBOARDING]
    for sources, target in TRANSITIONS.values():
        if target not in forward:
            continue
        for source in sources:
            if source in forward:
                assert forward.index(target) >= forward.index(source)


def test_allowed_transitions_from_applied():
    assert allowed_transitions("applied") == [
        Transition.WITHDRAW,
        Transition.START_REVIEW,
        Transition.SCHEDULE_INTERVIEW,
        Transition.RECORD_REJECTION,
    ]

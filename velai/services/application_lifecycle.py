"""
Application lifecycle state machine.

Statuses form a closed enumeration and only change through named
transitions listed in ``TRANSITIONS``. Which candidate-journey steps are
reachable is a pure function of the status and of whether any interview
exists, so it can be checked without a database or UI.

Journey steps:
    1 job detail, 2 interviewing, 3 hired, 4 offer letter,
    5 visa processing, 6 onboarding
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Tuple, Union

from velai.core.exceptions import InvalidTransitionError, ValidationError


class ApplicationStatus(str, Enum):
    """Every status an application row may hold."""

    # Invitation flow
    INVITED = "invited"
    ACCEPTED = "accepted"
    DECLINED = "declined"

    # Forward lifecycle
    APPLIED = "applied"
    REVIEWING = "reviewing"
    INTERVIEWING = "interviewing"
    OFFER_RECEIVED = "offer_received"
    HIRED = "hired"
    VISA_PROCESSING = "visa_processing"
    ONBOARDING = "onboarding"

    # Branches
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Transition(str, Enum):
    """Named operations allowed to change an application's status."""

    ACCEPT_INVITATION = "accept_invitation"
    DECLINE_INVITATION = "decline_invitation"
    WITHDRAW = "withdraw"
    START_REVIEW = "start_review"
    SCHEDULE_INTERVIEW = "schedule_interview"
    RECORD_OFFER = "record_offer"
    RECORD_HIRE = "record_hire"
    RECORD_REJECTION = "record_rejection"
    START_VISA_PROCESSING = "start_visa_processing"
    START_ONBOARDING = "start_onboarding"


S = ApplicationStatus

# Older rows written before the status vocabulary was unified
LEGACY_STATUS_ALIASES: Dict[str, ApplicationStatus] = {
    "under_review": S.REVIEWING,
    "interview_scheduled": S.INTERVIEWING,
    "offered": S.OFFER_RECEIVED,
}

TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset({S.REJECTED, S.WITHDRAWN, S.DECLINED})

# transition -> (allowed source statuses, target status)
TRANSITIONS: Dict[Transition, Tuple[FrozenSet[ApplicationStatus], ApplicationStatus]] = {
    Transition.ACCEPT_INVITATION: (frozenset({S.INVITED}), S.ACCEPTED),
    Transition.DECLINE_INVITATION: (frozenset({S.INVITED}), S.DECLINED),
    Transition.WITHDRAW: (frozenset({S.APPLIED, S.REVIEWING}), S.WITHDRAWN),
    Transition.START_REVIEW: (frozenset({S.APPLIED}), S.REVIEWING),
    Transition.SCHEDULE_INTERVIEW: (
        frozenset({S.APPLIED, S.REVIEWING, S.ACCEPTED, S.INTERVIEWING}),
        S.INTERVIEWING,
    ),
    Transition.RECORD_OFFER: (frozenset({S.INTERVIEWING}), S.OFFER_RECEIVED),
    Transition.RECORD_HIRE: (frozenset({S.OFFER_RECEIVED}), S.HIRED),
    Transition.RECORD_REJECTION: (
        frozenset({S.APPLIED, S.REVIEWING, S.INTERVIEWING}),
        S.REJECTED,
    ),
    Transition.START_VISA_PROCESSING: (frozenset({S.HIRED}), S.VISA_PROCESSING),
    Transition.START_ONBOARDING: (frozenset({S.VISA_PROCESSING}), S.ONBOARDING),
}

# Transitions that must record a reason and timestamp for audit display
AUDITED_TRANSITIONS: FrozenSet[Transition] = frozenset({Transition.WITHDRAW, Transition.RECORD_REJECTION})

JOURNEY_STEPS: Dict[int, str] = {
    1: "job_detail",
    2: "interviewing",
    3: "hired",
    4: "offer_letter",
    5: "visa_processing",
    6: "onboarding",
}

_STEPS_BY_STATUS: Dict[ApplicationStatus, int] = {
    S.APPLIED: 1,
    S.REVIEWING: 1,
    S.INVITED: 1,
    S.INTERVIEWING: 2,
    S.HIRED: 3,
    S.OFFER_RECEIVED: 4,
    S.VISA_PROCESSING: 5,
    S.ONBOARDING: 6,
    S.REJECTED: 1,
    S.DECLINED: 1,
    S.WITHDRAWN: 1,
}


def normalize_status(value: Union[str, ApplicationStatus]) -> ApplicationStatus:
    """Map a stored status string (including legacy aliases) onto the enum."""
    if isinstance(value, ApplicationStatus):
        return value
    key = str(value or "").strip().lower()
    if key in LEGACY_STATUS_ALIASES:
        return LEGACY_STATUS_ALIASES[key]
    try:
        return ApplicationStatus(key)
    except ValueError:
        raise ValidationError(f"Unknown application status: {value!r}") from None


def is_terminal(status: Union[str, ApplicationStatus]) -> bool:
    return normalize_status(status) in TERMINAL_STATUSES


def accessible_steps(status: Union[str, ApplicationStatus], has_interviews: bool) -> int:
    """
    Number of journey steps the candidate may open for this status.

    An ``accepted`` invitation waits at step 1 until the employer has created
    at least one interview. Every other status ignores ``has_interviews``: in
    particular an ``invited`` row stays locked even if interviews exist.
    """
    status = normalize_status(status)
    if status is S.ACCEPTED:
        return 2 if has_interviews else 1
    return _STEPS_BY_STATUS[status]


def is_step_accessible(step: int, status: Union[str, ApplicationStatus], has_interviews: bool) -> bool:
    if step not in JOURNEY_STEPS:
        return False
    return step <= accessible_steps(status, has_interviews)


def allowed_transitions(status: Union[str, ApplicationStatus]) -> List[Transition]:
    """Transitions that may be applied from ``status``, in declaration order."""
    status = normalize_status(status)
    return [name for name, (sources, _) in TRANSITIONS.items() if status in sources]


def next_status(transition: Transition, current: Union[str, ApplicationStatus]) -> ApplicationStatus:
    """
    Resolve the target status of ``transition`` from ``current``.

    Raises:
        InvalidTransitionError: the pair is not in the transition table
    """
    current = normalize_status(current)
    sources, target = TRANSITIONS[transition]
    if current in sources:
        return target

    if current in TERMINAL_STATUSES:
        reason = f"application is already {current.value}"
    elif transition is Transition.WITHDRAW and current is S.INTERVIEWING:
        reason = "withdrawal is not possible once interviewing has begun"
    else:
        reason = f"not allowed from status '{current.value}'"

    raise InvalidTransitionError(
        f"Cannot {transition.value.replace('_', ' ')}: {reason}",
        current_status=current.value,
        transition=transition.value,
    )

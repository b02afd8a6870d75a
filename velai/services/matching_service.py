"""
Candidate/job match scoring.

The score is a weighted sum of five 0-100 component scores:

    skills 40%, experience 20%, language 20%, location 10%, salary 10%

and is returned as an integer clamped to [0, 100]. Only the skills component
depends on the candidate's skill set, and it only grows as more requirements
are matched, so adding a matching skill can never lower the total.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from velai.models.candidate import Candidate
from velai.models.job import Job

logger = logging.getLogger(__name__)

WEIGHTS: Dict[str, float] = {
    "skills": 0.4,
    "experience": 0.2,
    "language": 0.2,
    "location": 0.1,
    "salary": 0.1,
}

# Skills component when the job lists no requirements (avoids 0/0)
EMPTY_REQUIREMENTS_SKILL_SCORE = 0

# Location component for a candidate elsewhere who is willing to relocate
RELOCATION_LOCATION_SCORE = 70


@dataclass
class CandidateProfile:
    """Non-skill candidate attributes the scorer looks at."""

    experience_years: Optional[float] = None
    current_location: Optional[str] = None
    languages: List[str] = field(default_factory=list)
    target_salary_range: Optional[Dict] = None
    willing_to_relocate: bool = False

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "CandidateProfile":
        return cls(
            experience_years=candidate.experience_years,
            current_location=candidate.current_location,
            languages=list(candidate.languages or []),
            target_salary_range=candidate.target_salary_range or None,
            willing_to_relocate=bool(candidate.willing_to_relocate),
        )


@dataclass
class JobMeta:
    """Non-skill job attributes the scorer looks at."""

    experience_level: Optional[str] = None
    location: Optional[str] = None
    preferred_language: Optional[str] = None
    salary_range: Optional[Dict] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobMeta":
        return cls(
            experience_level=job.experience_level,
            location="Remote" if job.is_remote and not job.location else job.location,
            preferred_language=job.preferred_language,
            salary_range=job.salary_range or None,
        )


def _normalize_terms(skills: Optional[Iterable[str]]) -> List[str]:
    return [s for s in (str(skill).strip().lower() for skill in skills or []) if s]


def skills_score(candidate_skills: Optional[Iterable[str]], job_requirements: Optional[Iterable[str]]) -> int:
    """
    Share of job requirements covered by the candidate, 0-100.

    A requirement counts as covered when a candidate skill equals it,
    contains it, or is contained in it (case-insensitive), so "React"
    covers "React Native" and "Node" covers "Node.js".
    """
    required = sorted(set(_normalize_terms(job_requirements)))
    if not required:
        return EMPTY_REQUIREMENTS_SKILL_SCORE

    have = set(_normalize_terms(candidate_skills))
    if not have:
        return 0

    matched = [req for req in required if any(req in skill or skill in req for skill in have)]
    return round(len(matched) / max(1, len(required)) * 100)


def experience_score(experience_level: Optional[str], years: Optional[float]) -> int:
    if not experience_level or years is None:
        return 0
    level = str(experience_level).lower()
    years = float(years)

    if "entry" in level:
        return 100 if years <= 2 else 80 if years <= 3 else 40
    if "mid" in level:
        if 2 <= years <= 5:
            return 100
        return 70 if years in (1, 6) else 40
    if "senior" in level:
        return 100 if years >= 5 else 80 if years >= 4 else 50
    return 60


def language_score(preferred_language: Optional[str], languages: Optional[Iterable[str]]) -> int:
    if not preferred_language:
        return 0
    spoken = _normalize_terms(languages)
    if not spoken:
        return 0
    target = preferred_language.strip().lower()
    return 100 if any(target in lang or lang in target for lang in spoken) else 40


def location_score(current_location: Optional[str], job_location: Optional[str], willing_to_relocate: bool = False) -> int:
    if not current_location or not job_location:
        return 0
    here = current_location.strip().lower()
    there = job_location.strip().lower()
    if here == there:
        return 100
    if here in there or there in here:
        return 80
    return RELOCATION_LOCATION_SCORE if willing_to_relocate else 40


def salary_score(candidate_range: Optional[Dict], job_range: Optional[Dict]) -> int:
    if not candidate_range or not job_range:
        return 0

    def _num(value) -> float:
        try:
            return float(value or 0)
        except (TypeError, ValueError):
            return 0.0

    c_min = _num(candidate_range.get("min"))
    c_max = _num(candidate_range.get("max")) or c_min
    j_min = _num(job_range.get("min"))
    j_max = _num(job_range.get("max")) or j_min

    if c_min == c_max == j_min == j_max == 0:
        return 60
    if c_min >= j_min and c_max <= j_max:
        return 100

    overlap = max(0.0, min(c_max, j_max) - max(c_min, j_min))
    candidate_span = max(1.0, c_max - c_min)
    ratio = max(0.0, min(1.0, overlap / candidate_span))
    return round(60 + ratio * 40)


def score_breakdown(
    candidate_skills: Optional[Iterable[str]],
    candidate_profile: Optional[CandidateProfile],
    job_requirements: Optional[Iterable[str]],
    job_meta: Optional[JobMeta],
) -> Dict[str, int]:
    """Per-component scores (each 0-100) keyed like ``WEIGHTS``."""
    profile = candidate_profile or CandidateProfile()
    meta = job_meta or JobMeta()
    return {
        "skills": skills_score(candidate_skills, job_requirements),
        "experience": experience_score(meta.experience_level, profile.experience_years),
        "language": language_score(meta.preferred_language, profile.languages),
        "location": location_score(profile.current_location, meta.location, profile.willing_to_relocate),
        "salary": salary_score(profile.target_salary_range, meta.salary_range),
    }


def compute_match_score(
    candidate_skills: Optional[Iterable[str]],
    candidate_profile: Optional[CandidateProfile],
    job_requirements: Optional[Iterable[str]],
    job_meta: Optional[JobMeta],
) -> int:
    """Weighted match score as an integer in [0, 100]. Deterministic for fixed inputs."""
    breakdown = score_breakdown(candidate_skills, candidate_profile, job_requirements, job_meta)
    total = sum(breakdown[name] * weight for name, weight in WEIGHTS.items())
    return max(0, min(100, int(round(total))))


def score_candidate_for_job(candidate: Candidate, job: Job) -> int:
    """Match score between stored candidate and job rows."""
    score = compute_match_score(
        candidate.skills or [],
        CandidateProfile.from_candidate(candidate),
        job.skills_required or [],
        JobMeta.from_job(job),
    )
    logger.debug(f"Match score candidate={candidate.id} job={job.id}: {score}")
    return score


def match_label(score: int) -> str:
    if score >= 80:
        return "Excellent Match"
    if score >= 60:
        return "Good Match"
    if score >= 40:
        return "Fair Match"
    return "Poor Match"

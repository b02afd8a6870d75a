"""Unit tests for the match scorer."""

import pytest

from velai.models.candidate import Candidate
from velai.models.job import Job
from velai.services.matching_service import (
    WEIGHTS,
    CandidateProfile,
    JobMeta,
    compute_match_score,
    experience_score,
    language_score,
    location_score,
    match_label,
    salary_score,
    score_breakdown,
    score_candidate_for_job,
    skills_score,
)


@pytest.fixture
def profile():
    return CandidateProfile(
        experience_years=3,
        current_location="Berlin",
        languages=["English"],
        target_salary_range={"min": 60000, "max": 70000},
        willing_to_relocate=True,
    )


@pytest.fixture
def meta():
    return JobMeta(
        experience_level="mid",
        location="Berlin",
        preferred_language="English",
        salary_range={"min": 55000, "max": 75000},
    )


def test_weights_sum_to_one():
    assert sum(WEIGHTS.values()) == pytest.approx(1.0)


def test_perfect_match_scores_100(profile, meta):
    score = compute_match_score(["React", "Node.js"], profile, ["react", "node.js"], meta)
    assert score == 100


def test_empty_inputs_score_zero():
    assert compute_match_score([], None, [], None) == 0
    assert compute_match_score(None, None, None, None) == 0


def test_partial_skill_overlap():
    assert skills_score(["React", "Node.js"], ["React", "Node.js", "Docker"]) == 67


def test_skill_matching_is_case_insensitive_and_substring_based():
    assert skills_score(["react"], ["React Native"]) == 100
    assert skills_score(["Node"], ["Node.js"]) == 100
    assert skills_score(["Python"], ["Go"]) == 0


def test_no_requirements_does_not_divide_by_zero():
    assert skills_score(["React"], []) == 0


def test_duplicate_requirements_count_once():
    assert skills_score(["React"], ["React", "react", "Docker"]) == 50


def test_adding_a_matching_skill_never_lowers_the_score(profile, meta):
    requirements = ["React", "Node.js", "Docker", "PostgreSQL", "AWS"]
    skills = []
    previous = compute_match_score(skills, profile, requirements, meta)
    for skill in requirements:
        skills.append(skill)
        current = compute_match_score(skills, profile, requirements, meta)
        assert current >= previous
        previous = current


@pytest.mark.parametrize(
    "skills, requirements",
    [
        (["React"] * 50, ["React"]),
        ([], ["React", "Docker"]),
        (["a", "b", "c"], ["x"]),
    ],
)
def test_score_is_always_bounded(skills, requirements, profile, meta):
    score = compute_match_score(skills, profile, requirements, meta)
    assert isinstance(score, int)
    assert 0 <= score <= 100


def test_deterministic(profile, meta):
    first = compute_match_score(["React", "Go"], profile, ["React", "Docker"], meta)
    second = compute_match_score(["React", "Go"], profile, ["React", "Docker"], meta)
    assert first == second


@pytest.mark.parametrize(
    "level, years, expected",
    [
        ("entry", 1, 100),
        ("entry", 3, 80),
        ("entry", 6, 40),
        ("mid", 4, 100),
        ("mid", 1, 70),
        ("mid", 8, 40),
        ("senior", 7, 100),
        ("senior", 4, 80),
        ("senior", 2, 50),
        ("lead", 10, 60),
        (None, 5, 0),
        ("mid", None, 0),
    ],
)
def test_experience_score(level, years, expected):
    assert experience_score(level, years) == expected


def test_language_score():
    assert language_score("German", ["English", "German"]) == 100
    assert language_score("German", ["English"]) == 40
    assert language_score("German", []) == 0
    assert language_score(None, ["English"]) == 0


def test_location_score():
    assert location_score("Berlin", "berlin") == 100
    assert location_score("Berlin", "Berlin, Germany") == 80
    assert location_score("Bangalore", "Berlin", willing_to_relocate=True) == 70
    assert location_score("Bangalore", "Berlin") == 40
    assert location_score(None, "Berlin") == 0


def test_salary_score():
    assert salary_score({"min": 60000, "max": 70000}, {"min": 55000, "max": 75000}) == 100
    assert salary_score({"min": 50000, "max": 65000}, {"min": 55000, "max": 75000}) == 87
    assert salary_score({"min": 90000, "max": 100000}, {"min": 55000, "max": 75000}) == 60
    assert salary_score({"min": 0, "max": 0}, {"min": 0, "max": 0}) == 60
    assert salary_score(None, {"min": 1}) == 0
    assert salary_score({"min": "n/a"}, {"min": 50000, "max": 60000}) == 60


def test_breakdown_keys_follow_weights(profile, meta):
    breakdown = score_breakdown(["React"], profile, ["React", "Docker"], meta)
    assert set(breakdown) == set(WEIGHTS)
    assert breakdown["skills"] == 50
    assert all(0 <= value <= 100 for value in breakdown.values())


def test_score_candidate_for_job_uses_model_fields():
    candidate = Candidate(
        full_name="Priya Sharma",
        email="priya@example.com",
        skills=["React", "Node.js", "TypeScript"],
        experience_years=4,
        current_location="Bangalore",
        languages=["English"],
        target_salary_range={"min": 50000, "max": 65000},
        willing_to_relocate=True,
    )
    job = Job(
        title="Full Stack Developer",
        skills_required=["React", "Node.js", "Docker"],
        experience_level="mid",
        location="Berlin",
        preferred_language="English",
        salary_range={"min": 55000, "max": 75000},
        is_remote=False,
    )

    expected = compute_match_score(
        ["React", "Node.js", "TypeScript"],
        CandidateProfile.from_candidate(candidate),
        ["React", "Node.js", "Docker"],
        JobMeta.from_job(job),
    )
    assert score_candidate_for_job(candidate, job) == expected
    assert 80 <= expected <= 85


def test_remote_job_without_location_is_labelled_remote():
    job = Job(title="Backend Engineer", is_remote=True, location=None)
    assert JobMeta.from_job(job).location == "Remote"


@pytest.mark.parametrize(
    "score, label",
    [(95, "Excellent Match"), (80, "Excellent Match"), (65, "Good Match"), (40, "Fair Match"), (10, "Poor Match")],
)
def test_match_label(score, label):
    assert match_label(score) == label

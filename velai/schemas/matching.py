"""Match scoring schemas."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SalaryRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: Optional[str] = None


class CandidateProfileIn(BaseModel):
    skills: List[str] = Field(default_factory=list)
    experience_years: Optional[float] = Field(None, ge=0)
    current_location: Optional[str] = None
    languages: List[str] = Field(default_factory=list)
    target_salary_range: Optional[SalaryRange] = None
    willing_to_relocate: bool = False


class JobRequirementsIn(BaseModel):
    skills_required: List[str] = Field(default_factory=list)
    experience_level: Optional[str] = None
    location: Optional[str] = None
    preferred_language: Optional[str] = None
    salary_range: Optional[SalaryRange] = None


class MatchScoreRequest(BaseModel):
    candidate: CandidateProfileIn
    job: JobRequirementsIn


class MatchScoreResponse(BaseModel):
    score: int
    label: str
    breakdown: Dict[str, int]

"""Candidate (job seeker) profile model."""

from sqlalchemy import Boolean, Column, Integer, String

from velai.db.base import Base, JSONType


class Candidate(Base):
    """Job seeker profile used for matching and applications."""

    __tablename__ = "candidates"

    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True)

    # Matching inputs
    skills = Column(JSONType, default=list)  # ["React", "Node.js", ...]
    experience_years = Column(Integer, nullable=True)
    current_location = Column(String(255))
    languages = Column(JSONType, default=list)  # ["English", "German", ...]
    target_salary_range = Column(JSONType, default=dict)  # {"min": 50000, "max": 70000, "currency": "EUR"}
    preferred_job_types = Column(JSONType, default=list)  # ["full_time", "contract"]
    willing_to_relocate = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Candidate {self.full_name}>"

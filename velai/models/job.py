"""Job model."""

from sqlalchemy import Boolean, Column, String, Text

from velai.db.base import Base, JSONType


class Job(Base):
    """Job posting model."""

    __tablename__ = "jobs"

    title = Column(String(500), nullable=False, index=True)
    company_name = Column(String(255))
    description = Column(Text)

    # Requirements
    skills_required = Column(JSONType, default=list)  # ["React", "Docker", ...]
    experience_level = Column(String(50))  # entry, mid, senior
    preferred_language = Column(String(50))
    salary_range = Column(JSONType, default=dict)  # {"min": 55000, "max": 75000, "currency": "EUR"}

    # Location
    location = Column(String(255))
    job_type = Column(String(50))  # full_time, part_time, contract
    is_remote = Column(Boolean, default=False)

    # Status
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Job {self.title} at {self.company_name}>"

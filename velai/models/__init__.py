"""Database models."""

# Base models (no foreign keys)
from velai.models.candidate import Candidate
from velai.models.job import Job
from velai.models.document import Document

# Models with foreign keys to base models
from velai.models.application import Application
from velai.models.interview import Interview

# Export all models
__all__ = [
    "Candidate",
    "Job",
    "Document",
    "Application",
    "Interview",
]

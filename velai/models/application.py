"""Application model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid

from velai.db.base import Base, JSONType, utcnow


class Application(Base):
    """A candidate's application to a job, or an employer's direct invitation."""

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("applicant_id", "job_id", name="unique_applicant_job_application"),
    )

    job_id = Column(Uuid(as_uuid=True), ForeignKey("jobs.id"), nullable=False, index=True)
    applicant_id = Column(Uuid(as_uuid=True), ForeignKey("candidates.id"), nullable=False, index=True)

    # Lifecycle (values of ApplicationStatus)
    status = Column(String(30), nullable=False, default="applied", index=True)
    is_invitation = Column(Boolean, default=False, nullable=False)
    applied_date = Column(DateTime, default=utcnow, nullable=False)

    # Audit for terminal transitions
    status_reason = Column(Text)
    rejected_at = Column(DateTime)
    withdrawn_at = Column(DateTime)
    status_history = Column(JSONType, default=list)  # [{"from": ..., "to": ..., "at": ..., "reason": ...}]

    # Cached derived score, 0 - 100
    match_score = Column(Integer)

    # Document references; absence means "not provided"
    resume_id = Column(Uuid(as_uuid=True), nullable=True)
    cover_letter_id = Column(Uuid(as_uuid=True), nullable=True)
    additional_document_ids = Column(JSONType, default=list)

    # Captured at submission
    custom_questions = Column(JSONType, default=dict)
    job_specific = Column(JSONType, default=dict)  # availability_date, salary_expectation, visa_status, motivation
    cover_note = Column(Text)

    def __repr__(self):
        return f"<Application {self.applicant_id} -> {self.job_id} ({self.status})>"

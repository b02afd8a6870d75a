"""Interview model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from velai.db.base import Base


class Interview(Base):
    """
    Scheduled interview.

    ``application_id`` is NULL for a direct interview invitation, which is
    linked to the candidate/job pair instead of an application.
    """

    __tablename__ = "interviews"

    application_id = Column(Uuid(as_uuid=True), ForeignKey("applications.id"), nullable=True, index=True)
    job_id = Column(Uuid(as_uuid=True), ForeignKey("jobs.id"), nullable=False, index=True)
    candidate_id = Column(Uuid(as_uuid=True), ForeignKey("candidates.id"), nullable=False, index=True)

    interview_type = Column(String(50), default="technical")  # screening, technical, hr, final
    format = Column(String(20), default="video")  # video, phone, onsite
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, default=60)
    status = Column(String(20), default="scheduled", index=True)  # scheduled, completed, cancelled, rescheduled
    interviewer_ref = Column(String(255))
    meeting_link = Column(String(500))
    notes = Column(Text)

    def __repr__(self):
        return f"<Interview {self.format} at {self.scheduled_at} ({self.status})>"

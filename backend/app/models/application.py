from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApplicationStatus(Base):
    """
    Admin-managed status lookup. Applications reference rows by id so a rename
    never breaks existing transitions.
    """
    __tablename__ = "application_statuses"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(String(50), unique=True, nullable=False)


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_job_applications_candidate_job"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False, index=True)
    status_id = Column(Integer, ForeignKey("application_statuses.id"), nullable=False)
    # Cached copy of AutomatedScore.total_weighted_score
    score = Column(Float, nullable=True)
    applied_at = Column(DateTime(timezone=True), default=_utcnow)
    last_updated = Column(DateTime(timezone=True), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    job = relationship("Job", back_populates="applications")
    candidate = relationship("Candidate", back_populates="applications")
    status = relationship("ApplicationStatus")
    interviews = relationship("Interview", back_populates="application", cascade="all, delete-orphan")
    status_history = relationship(
        "ApplicationStatusHistory",
        back_populates="application",
        order_by="ApplicationStatusHistory.id",
    )
    automated_score = relationship("AutomatedScore", back_populates="application", uselist=False)


class ApplicationStatusHistory(Base):
    """Insert-only ledger row: one per real status change (plus one at creation)."""
    __tablename__ = "application_status_history"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("job_applications.id"), nullable=False, index=True)
    # Status being entered
    status_id = Column(Integer, ForeignKey("application_statuses.id"), nullable=False)
    # Labels as they read at the time of the change (survive later renames)
    from_status = Column(String(50), nullable=True)
    to_status = Column(String(50), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL = system
    note = Column(Text, nullable=True)

    application = relationship("JobApplication", back_populates="status_history")
    status = relationship("ApplicationStatus")

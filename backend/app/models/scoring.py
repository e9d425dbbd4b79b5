from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScoringConfiguration(Base):
    __tablename__ = "scoring_configurations"

    id = Column(Integer, primary_key=True, index=True)
    position_id = Column(Integer, ForeignKey("positions.id"), nullable=False, index=True)
    # Percentages; callers must keep the five summing to 100.
    skill_match_weight = Column(Float, nullable=False, default=30.0)
    experience_weight = Column(Float, nullable=False, default=20.0)
    interview_weight = Column(Float, nullable=False, default=30.0)
    test_weight = Column(Float, nullable=False, default=15.0)
    education_weight = Column(Float, nullable=False, default=5.0)
    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    position = relationship("Position", back_populates="scoring_configurations")


class AutomatedScore(Base):
    """
    Latest computed score for one application. Recomputation overwrites this row;
    there is no score history.
    """
    __tablename__ = "automated_scores"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("job_applications.id"), nullable=False, unique=True, index=True)
    skill_match_score = Column(Float, nullable=False, default=0.0)
    experience_score = Column(Float, nullable=False, default=0.0)
    interview_score = Column(Float, nullable=False, default=0.0)
    test_score = Column(Float, nullable=False, default=0.0)
    education_score = Column(Float, nullable=False, default=0.0)
    total_weighted_score = Column(Float, nullable=False, default=0.0, index=True)
    score_breakdown = Column(Text, nullable=True)  # JSON, audit/debug only
    calculated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    is_deleted = Column(Boolean, nullable=False, default=False)

    application = relationship("JobApplication", back_populates="automated_score")

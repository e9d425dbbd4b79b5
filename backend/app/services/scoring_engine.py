"""
Automated candidate scoring.

Four sub-scores (0-100) are combined with the position's weights:

    skill_match   required/preferred job skills covered by the candidate
    experience    total years across all candidate skills, 10+ years = 100
    interview     mean feedback rating (1-5) scaled to 100
    education     25 points per qualification, capped at 100
    test          always 0; the online-test feature is retired but its weight slot stays

The result is upserted into the single AutomatedScore row of the application.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from ..models.application import JobApplication
from ..models.candidate import CandidateQualification, CandidateSkill
from ..models.interview import Interview, InterviewFeedback
from ..models.job import Job, JobSkill
from ..models.scoring import AutomatedScore, ScoringConfiguration
from ..utils.error_handlers import NotFoundError, get_error_message
from .notifications import ScoreEvent
from .score_config import get_or_create_default

logger = logging.getLogger(__name__)

REQUIRED_SKILLS_POINTS = 70
PREFERRED_SKILLS_POINTS = 30
FULL_EXPERIENCE_YEARS = 10
MAX_RATING = 5
POINTS_PER_QUALIFICATION = 25


@dataclass
class ScoringSnapshot:
    """Read-only inputs for one application, loaded in one request scope."""
    application_id: int
    job_id: int
    position_id: int
    required_skill_ids: set[int] = field(default_factory=set)
    preferred_skill_ids: set[int] = field(default_factory=set)
    candidate_skill_ids: set[int] = field(default_factory=set)
    candidate_years: list[int | None] = field(default_factory=list)
    qualification_count: int = 0
    ratings: list[int] = field(default_factory=list)


@dataclass
class ScoreResult:
    skill_match_score: float
    experience_score: float
    interview_score: float
    test_score: float
    education_score: float
    total_weighted_score: float
    weights: dict[str, float]

    def breakdown(self) -> dict[str, Any]:
        return {
            "skill_match": {"score": self.skill_match_score, "weight": self.weights["skill_match"]},
            "experience": {"score": self.experience_score, "weight": self.weights["experience"]},
            "interview": {"score": self.interview_score, "weight": self.weights["interview"]},
            "test": {"score": self.test_score, "weight": self.weights["test"]},
            "education": {"score": self.education_score, "weight": self.weights["education"]},
            "total": self.total_weighted_score,
        }


def skill_match_score(
    *,
    required_skill_ids: set[int],
    preferred_skill_ids: set[int],
    candidate_skill_ids: set[int],
) -> float:
    """
    Required skills are worth 70 points, preferred 30.

    An empty category gets full credit only when the other one has skills;
    with no job skills at all there is nothing to match and the score is 0.
    """
    if not required_skill_ids and not preferred_skill_ids:
        return 0.0

    if required_skill_ids:
        matched_required = len(required_skill_ids & candidate_skill_ids)
        required_component = matched_required / len(required_skill_ids) * REQUIRED_SKILLS_POINTS
    else:
        required_component = float(REQUIRED_SKILLS_POINTS)

    if preferred_skill_ids:
        matched_preferred = len(preferred_skill_ids & candidate_skill_ids)
        preferred_component = matched_preferred / len(preferred_skill_ids) * PREFERRED_SKILLS_POINTS
    else:
        preferred_component = float(PREFERRED_SKILLS_POINTS)

    return float(min(100.0, required_component + preferred_component))


def experience_score(*, years_per_skill: list[int | None]) -> float:
    # All candidate skills count, not only the ones the job asks for.
    total_years = sum((y or 0) for y in years_per_skill)
    if total_years <= 0:
        return 0.0
    return float(min(100.0, total_years / FULL_EXPERIENCE_YEARS * 100))


def interview_score(*, ratings: list[int]) -> float:
    rated = [r for r in ratings if r is not None and r > 0]
    if not rated:
        return 0.0
    average = sum(rated) / len(rated)
    return float(min(100.0, average / MAX_RATING * 100))


def education_score(*, qualification_count: int) -> float:
    return float(min(100, max(0, int(qualification_count or 0)) * POINTS_PER_QUALIFICATION))


def config_weights(config: ScoringConfiguration) -> dict[str, float]:
    return {
        "skill_match": float(config.skill_match_weight or 0.0),
        "experience": float(config.experience_weight or 0.0),
        "interview": float(config.interview_weight or 0.0),
        "test": float(config.test_weight or 0.0),
        "education": float(config.education_weight or 0.0),
    }


def score_snapshot(snapshot: ScoringSnapshot, weights: dict[str, float]) -> ScoreResult:
    """Pure part of the computation: snapshot + weights -> sub-scores and total."""
    subs = {
        "skill_match": skill_match_score(
            required_skill_ids=snapshot.required_skill_ids,
            preferred_skill_ids=snapshot.preferred_skill_ids,
            candidate_skill_ids=snapshot.candidate_skill_ids,
        ),
        "experience": experience_score(years_per_skill=snapshot.candidate_years),
        "interview": interview_score(ratings=snapshot.ratings),
        "test": 0.0,
        "education": education_score(qualification_count=snapshot.qualification_count),
    }
    total = sum(subs[name] * weights[name] / 100 for name in ("skill_match", "experience", "interview", "test", "education"))
    return ScoreResult(
        skill_match_score=subs["skill_match"],
        experience_score=subs["experience"],
        interview_score=subs["interview"],
        test_score=subs["test"],
        education_score=subs["education"],
        total_weighted_score=float(total),
        weights=dict(weights),
    )


def _get_live_application(db: Session, application_id: int) -> JobApplication:
    application = (
        db.query(JobApplication)
        .filter(JobApplication.id == int(application_id), JobApplication.is_deleted.is_(False))
        .first()
    )
    if not application:
        raise NotFoundError(get_error_message("application_not_found"))
    return application


def load_snapshot(db: Session, application: JobApplication) -> ScoringSnapshot:
    job = db.query(Job).filter(Job.id == application.job_id).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))

    job_skills = db.query(JobSkill).filter(JobSkill.job_id == job.id).all()
    candidate_skills = (
        db.query(CandidateSkill)
        .filter(CandidateSkill.candidate_id == application.candidate_id)
        .all()
    )
    qualification_count = (
        db.query(CandidateQualification)
        .filter(CandidateQualification.candidate_id == application.candidate_id)
        .count()
    )
    ratings = [
        int(r)
        for (r,) in (
            db.query(InterviewFeedback.rating)
            .join(Interview, InterviewFeedback.interview_id == Interview.id)
            .filter(Interview.application_id == application.id)
            .all()
        )
    ]

    return ScoringSnapshot(
        application_id=int(application.id),
        job_id=int(job.id),
        position_id=int(job.position_id),
        required_skill_ids={int(js.skill_id) for js in job_skills if js.required},
        preferred_skill_ids={int(js.skill_id) for js in job_skills if not js.required},
        candidate_skill_ids={int(cs.skill_id) for cs in candidate_skills},
        candidate_years=[cs.years_of_experience for cs in candidate_skills],
        qualification_count=int(qualification_count),
        ratings=ratings,
    )


def compute_score(db: Session, application_id: int, dispatcher=None) -> AutomatedScore:
    """
    Compute and upsert the score of one application.

    Raises NotFoundError for a missing or soft-deleted application. When the
    total differs from the stored one and a dispatcher is given, a ScoreEvent
    is queued after the write.
    """
    application = _get_live_application(db, application_id)
    snapshot = load_snapshot(db, application)
    config = get_or_create_default(db, snapshot.position_id)
    result = score_snapshot(snapshot, config_weights(config))

    row = db.query(AutomatedScore).filter(AutomatedScore.application_id == application.id).first()
    previous_total = None
    if row is None:
        row = AutomatedScore(application_id=int(application.id))
        db.add(row)
    elif not row.is_deleted:
        previous_total = row.total_weighted_score

    row.skill_match_score = result.skill_match_score
    row.experience_score = result.experience_score
    row.interview_score = result.interview_score
    row.test_score = result.test_score
    row.education_score = result.education_score
    row.total_weighted_score = result.total_weighted_score
    row.score_breakdown = json.dumps(result.breakdown())
    row.calculated_at = datetime.now(timezone.utc)
    row.is_deleted = False

    application.score = result.total_weighted_score

    db.commit()
    db.refresh(row)
    logger.info(
        "Scored application %s: total=%.2f (position %s, config %s)",
        application.id,
        result.total_weighted_score,
        snapshot.position_id,
        config.id,
    )

    if dispatcher is not None and previous_total != result.total_weighted_score:
        dispatcher.enqueue_score_event(
            ScoreEvent(
                application_id=int(application.id),
                job_id=snapshot.job_id,
                previous_total=previous_total,
                new_total=result.total_weighted_score,
            )
        )
    return row


def get_score(db: Session, application_id: int) -> AutomatedScore:
    row = (
        db.query(AutomatedScore)
        .join(JobApplication, AutomatedScore.application_id == JobApplication.id)
        .filter(
            AutomatedScore.application_id == int(application_id),
            AutomatedScore.is_deleted.is_(False),
            JobApplication.is_deleted.is_(False),
        )
        .first()
    )
    if not row:
        raise NotFoundError(get_error_message("score_not_found"))
    return row


def get_rankings_for_job(db: Session, job_id: int) -> list[AutomatedScore]:
    """Latest scores for the job's live applications, best first."""
    return (
        db.query(AutomatedScore)
        .join(JobApplication, AutomatedScore.application_id == JobApplication.id)
        .filter(
            JobApplication.job_id == int(job_id),
            JobApplication.is_deleted.is_(False),
            AutomatedScore.is_deleted.is_(False),
        )
        .order_by(AutomatedScore.total_weighted_score.desc())
        .all()
    )


def score_to_public(row: AutomatedScore) -> dict:
    breakdown = None
    try:
        breakdown = json.loads(row.score_breakdown) if row.score_breakdown else None
    except ValueError:
        logger.warning("Unreadable score breakdown for application %s", row.application_id)
        breakdown = None

    application = row.application
    candidate = application.candidate if application else None
    job = application.job if application else None
    return {
        "id": int(row.id),
        "application_id": int(row.application_id),
        "skill_match_score": float(row.skill_match_score),
        "experience_score": float(row.experience_score),
        "interview_score": float(row.interview_score),
        "test_score": float(row.test_score),
        "education_score": float(row.education_score),
        "total_weighted_score": float(row.total_weighted_score),
        "breakdown": breakdown,
        "calculated_at": row.calculated_at.isoformat() if isinstance(row.calculated_at, datetime) else row.calculated_at,
        "candidate_name": candidate.full_name if candidate else None,
        "job_title": job.title if job else None,
    }

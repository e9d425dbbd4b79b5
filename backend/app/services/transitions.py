"""
Status transitions of a single job application.

The status graph is open: any status may move to any other status, including
out of Selected or Rejected. Do not add an allowed-transitions table here.
The only rules:

  * the application must exist and not be soft-deleted;
  * the target status must exist;
  * moving to the status the application already has is a no-op (no ledger
    row, no notification);
  * every real change updates the application, appends exactly one ledger
    row and queues one TransitionEvent.

Concurrent transitions on one application are last-writer-wins for the
current status; each still writes its own ledger row.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.application import ApplicationStatus, ApplicationStatusHistory, JobApplication
from ..models.candidate import Candidate
from ..models.job import Job
from ..models.scoring import AutomatedScore
from ..utils.error_handlers import ConflictError, NotFoundError, get_error_message
from . import status_ledger
from .application_status import find_status_by_label, get_initial_status, get_status, list_statuses
from .notifications import TransitionEvent

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    application: JobApplication
    changed: bool
    entry: ApplicationStatusHistory | None = None
    event: TransitionEvent | None = None


def get_live_application(db: Session, application_id: int) -> JobApplication:
    application = (
        db.query(JobApplication)
        .filter(JobApplication.id == int(application_id), JobApplication.is_deleted.is_(False))
        .first()
    )
    if not application:
        raise NotFoundError(get_error_message("application_not_found"))
    return application


def apply_transition(
    db: Session,
    application: JobApplication,
    new_status: ApplicationStatus,
    *,
    actor_id: int | None,
    note: str | None,
) -> TransitionResult:
    """
    Stage the change in the session without committing. Shared by the single
    and bulk paths so both follow the same no-op rule.
    """
    if int(application.status_id) == int(new_status.id):
        return TransitionResult(application=application, changed=False)

    previous_label = application.status.status if application.status else None

    application.status_id = int(new_status.id)
    application.status = new_status
    application.last_updated = datetime.now(timezone.utc)
    application.updated_by = actor_id

    entry = status_ledger.append_entry(
        db,
        application=application,
        new_status=new_status,
        previous_label=previous_label,
        actor_id=actor_id,
        note=note,
    )
    event = TransitionEvent(
        application_id=int(application.id),
        previous_status=previous_label,
        new_status=new_status.status,
        actor_id=actor_id,
        note=note,
    )
    return TransitionResult(application=application, changed=True, entry=entry, event=event)


def transition_application(
    db: Session,
    application_id: int,
    new_status_id: int,
    *,
    actor_id: int | None = None,
    note: str | None = None,
    dispatcher=None,
) -> TransitionResult:
    application = get_live_application(db, application_id)
    new_status = get_status(db, new_status_id)

    result = apply_transition(db, application, new_status, actor_id=actor_id, note=note)
    if not result.changed:
        logger.debug("Application %s already in status %s; nothing to do", application.id, new_status.status)
        return result

    db.commit()
    db.refresh(application)
    logger.info(
        "Application %s moved %s -> %s by %s",
        application.id,
        result.event.previous_status,
        result.event.new_status,
        actor_id if actor_id is not None else "system",
    )

    if dispatcher is not None:
        dispatcher.enqueue(result.event)
    return result


def create_application(
    db: Session,
    *,
    job_id: int,
    candidate_id: int,
    actor_id: int | None = None,
    note: str | None = "Application created",
) -> JobApplication:
    """
    Create an application in the initial status and write its first ledger row
    in the same commit. No notification is sent for creation.

    One application per (candidate, job) ever: a soft-deleted application
    still blocks a new one, so its ledger stays the only history of the pair.
    """
    job = _get_live_job(db, job_id)

    candidate = db.query(Candidate).filter(Candidate.id == int(candidate_id)).first()
    if not candidate:
        raise NotFoundError(get_error_message("candidate_not_found"))

    existing = (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job.id, JobApplication.candidate_id == candidate.id)
        .first()
    )
    if existing:
        raise ConflictError(get_error_message("already_applied"))

    status = get_initial_status(db)
    now = datetime.now(timezone.utc)
    application = JobApplication(
        job_id=int(job.id),
        candidate_id=int(candidate.id),
        status_id=int(status.id),
        applied_at=now,
        last_updated=now,
        created_by=actor_id,
        updated_by=actor_id,
    )
    db.add(application)
    db.flush()

    status_ledger.append_entry(
        db,
        application=application,
        new_status=status,
        previous_label=None,
        actor_id=actor_id,
        note=note,
    )
    db.commit()
    db.refresh(application)
    logger.info("Created application %s (job %s, candidate %s)", application.id, job.id, candidate.id)
    return application


def soft_delete_application(db: Session, application_id: int, *, actor_id: int | None = None) -> JobApplication:
    """Soft-delete the application together with its score. Ledger rows stay untouched."""
    application = get_live_application(db, application_id)
    application.is_deleted = True
    application.updated_by = actor_id
    application.last_updated = datetime.now(timezone.utc)

    score = db.query(AutomatedScore).filter(AutomatedScore.application_id == application.id).first()
    if score:
        score.is_deleted = True

    db.commit()
    logger.info("Soft-deleted application %s", application.id)
    return application


def get_history(db: Session, application_id: int) -> list[ApplicationStatusHistory]:
    """Ledger entries of the application, oldest first. Soft-deleted applications keep theirs."""
    exists = db.query(JobApplication.id).filter(JobApplication.id == int(application_id)).first()
    if not exists:
        raise NotFoundError(get_error_message("application_not_found"))
    return status_ledger.list_entries(db, application_id)


def _get_live_job(db: Session, job_id: int) -> Job:
    job = db.query(Job).filter(Job.id == int(job_id), Job.is_deleted.is_(False)).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    return job


def list_status_counts(db: Session, job_id: int) -> dict[str, int]:
    """
    Live applications of a job per status label. Every known status is
    present, with 0 when no application holds it.
    """
    job = _get_live_job(db, job_id)
    counts = dict(
        db.query(JobApplication.status_id, func.count(JobApplication.id))
        .filter(JobApplication.job_id == job.id, JobApplication.is_deleted.is_(False))
        .group_by(JobApplication.status_id)
        .all()
    )
    return {s.status: int(counts.get(s.id, 0)) for s in list_statuses(db)}


def list_shortlisted(db: Session, job_id: int) -> list[JobApplication]:
    job = _get_live_job(db, job_id)
    status = find_status_by_label(db, "Shortlisted")
    if status is None:
        return []
    return list_applications(db, job_id=job.id, status_id=status.id)


def list_applications(
    db: Session,
    *,
    job_id: int | None = None,
    candidate_id: int | None = None,
    status_id: int | None = None,
) -> list[JobApplication]:
    q = db.query(JobApplication).filter(JobApplication.is_deleted.is_(False))
    if job_id is not None:
        q = q.filter(JobApplication.job_id == int(job_id))
    if candidate_id is not None:
        q = q.filter(JobApplication.candidate_id == int(candidate_id))
    if status_id is not None:
        q = q.filter(JobApplication.status_id == int(status_id))
    return q.order_by(JobApplication.applied_at.desc(), JobApplication.id.desc()).all()


def application_to_public(application: JobApplication, *, history: list[ApplicationStatusHistory] | None = None) -> dict:
    candidate = application.candidate
    job = application.job
    payload = {
        "id": int(application.id),
        "job_id": int(application.job_id),
        "job_title": job.title if job else None,
        "candidate_id": int(application.candidate_id),
        "candidate_name": candidate.full_name if candidate else None,
        "candidate_email": candidate.email if candidate else None,
        "status_id": int(application.status_id),
        "status": application.status.status if application.status else None,
        "score": float(application.score) if application.score is not None else None,
        "applied_at": application.applied_at.isoformat() if isinstance(application.applied_at, datetime) else application.applied_at,
        "last_updated": application.last_updated.isoformat() if isinstance(application.last_updated, datetime) else application.last_updated,
        "created_by": application.created_by,
        "updated_by": application.updated_by,
    }
    if history is not None:
        payload["status_history"] = [status_ledger.entry_to_public(e) for e in history]
    return payload

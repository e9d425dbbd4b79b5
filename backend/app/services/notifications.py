"""
Notification fan-out for application lifecycle events.

The request path only hands an event to `NotificationDispatcher`; the actual
work (in-app rows + candidate email) runs as a FastAPI background task after
the response has been sent. Delivery is best-effort and at-most-once: every
failure inside a worker is logged and dropped, nothing is retried.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .. import database
from ..config import NOTIFICATIONS_ENABLED
from ..models.application import JobApplication
from ..models.notification import Notification
from ..models.user import User
from ..utils.error_handlers import NotificationFailure
from . import emailer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionEvent:
    application_id: int
    previous_status: str | None
    new_status: str
    actor_id: int | None = None
    note: str | None = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ScoreEvent:
    application_id: int
    job_id: int
    previous_total: float | None
    new_total: float


@dataclass(frozen=True)
class StageTemplate:
    stage: str
    email_subject: str
    email_body: str
    notification_title: str
    notification_message: str
    notify_roles: tuple[str, ...]
    notification_type: str = "Info"


STAGE_TEMPLATES: dict[str, StageTemplate] = {
    t.stage.lower(): t
    for t in (
        StageTemplate(
            stage="Shortlisted",
            email_subject="Application Shortlisted - {job_title}",
            email_body=(
                "Dear {candidate_name},\n\nCongratulations! Your application for {job_title} has been "
                "shortlisted. We will contact you soon for the next steps.\n\nBest regards,\nHR Team"
            ),
            notification_title="Application Shortlisted",
            notification_message="Your application for {job_title} has been shortlisted!",
            notify_roles=("recruiter", "hr"),
            notification_type="Success",
        ),
        StageTemplate(
            stage="Interview",
            email_subject="Interview Stage - {job_title}",
            email_body=(
                "Dear {candidate_name},\n\nYour application for {job_title} has moved to the interview "
                "stage. You will receive interview details shortly.\n\nBest regards,\nHR Team"
            ),
            notification_title="Moved to Interview Stage",
            notification_message="Your application for {job_title} is now in the interview stage",
            notify_roles=("recruiter", "hr", "interviewer"),
        ),
        StageTemplate(
            stage="Selected",
            email_subject="Job Offer - {job_title}",
            email_body=(
                "Dear {candidate_name},\n\nCongratulations! We are pleased to offer you the position of "
                "{job_title}. Please check your offer letter for details.\n\nBest regards,\nHR Team"
            ),
            notification_title="Job Offer",
            notification_message="Congratulations! You have received a job offer for {job_title}",
            notify_roles=("hr", "recruiter"),
            notification_type="Success",
        ),
        StageTemplate(
            stage="Rejected",
            email_subject="Application Update - {job_title}",
            email_body=(
                "Dear {candidate_name},\n\nThank you for your interest in {job_title}. After careful "
                "consideration, we have decided to move forward with other candidates. We wish you the "
                "best in your job search.\n\nBest regards,\nHR Team"
            ),
            notification_title="Application Update",
            notification_message="Your application for {job_title} status has been updated",
            notify_roles=("recruiter", "hr"),
        ),
        StageTemplate(
            stage="On Hold",
            email_subject="Application On Hold - {job_title}",
            email_body=(
                "Dear {candidate_name},\n\nYour application for {job_title} has been placed on hold. "
                "We will notify you of any updates.\n\nBest regards,\nHR Team"
            ),
            notification_title="Application On Hold",
            notification_message="Your application for {job_title} has been placed on hold",
            notify_roles=("recruiter", "hr"),
        ),
    )
}


def get_stage_template(status_label: str | None) -> StageTemplate | None:
    return STAGE_TEMPLATES.get((status_label or "").strip().lower())


class NotificationDispatcher:
    """
    Hands events to a background runner (FastAPI BackgroundTasks in the API).
    The caller's obligation ends once the event is queued.
    """

    def __init__(self, background_tasks=None, enabled: bool | None = None):
        self.background_tasks = background_tasks
        self.enabled = NOTIFICATIONS_ENABLED if enabled is None else enabled

    def _queue(self, func, event) -> bool:
        if not self.enabled or self.background_tasks is None:
            return False
        try:
            self.background_tasks.add_task(func, event)
            return True
        except Exception as e:
            logger.warning("Failed to queue notification for application %s: %s", event.application_id, e)
            return False

    def enqueue(self, event: TransitionEvent) -> bool:
        return self._queue(dispatch_transition_event, event)

    def enqueue_score_event(self, event: ScoreEvent) -> bool:
        return self._queue(dispatch_score_event, event)


def _users_in_roles(db: Session, roles: tuple[str, ...]) -> list[User]:
    if not roles:
        return []
    return db.query(User).filter(User.role.in_(list(roles))).order_by(User.id).all()


def _deliver_transition(db: Session, event: TransitionEvent) -> int:
    template = get_stage_template(event.new_status)
    if template is None:
        logger.debug("No stage template for status %r; nothing to send", event.new_status)
        return 0

    application = db.query(JobApplication).filter(JobApplication.id == event.application_id).first()
    if not application:
        raise NotificationFailure(f"Application {event.application_id} no longer exists")

    candidate = application.candidate
    job = application.job
    job_title = (job.title if job else None) or "the position"
    candidate_name = (candidate.full_name if candidate else None) or "Candidate"

    notified: set[int] = set()
    rows: list[Notification] = []
    if candidate and candidate.user_id:
        rows.append(
            Notification(
                user_id=int(candidate.user_id),
                title=template.notification_title,
                message=template.notification_message.format(job_title=job_title, status=event.new_status),
                type=template.notification_type,
                related_entity_type="JobApplication",
                related_entity_id=int(application.id),
            )
        )
        notified.add(int(candidate.user_id))

    for user in _users_in_roles(db, template.notify_roles):
        if int(user.id) in notified:
            continue
        notified.add(int(user.id))
        rows.append(
            Notification(
                user_id=int(user.id),
                title="Application Status Update",
                message=f"Application for {candidate_name} for {job_title} moved to {event.new_status}",
                type="Info",
                related_entity_type="JobApplication",
                related_entity_id=int(application.id),
            )
        )

    db.add_all(rows)
    db.commit()

    to_email = (candidate.email if candidate else "") or ""
    if to_email:
        try:
            emailer.send_email(
                to_email=to_email,
                subject=template.email_subject.format(job_title=job_title),
                body=template.email_body.format(
                    candidate_name=candidate_name,
                    job_title=job_title,
                    status=event.new_status,
                ),
            )
        except Exception as e:
            # In-app notifications are already stored; the email is best-effort.
            logger.warning("Stage email for application %s failed: %s: %s", application.id, type(e).__name__, e)

    return len(rows)


def dispatch_transition_event(event: TransitionEvent) -> None:
    """Background worker for one status transition. Never raises."""
    db = database.new_session()
    try:
        count = _deliver_transition(db, event)
        logger.info(
            "Dispatched %s notification(s) for application %s (%s -> %s)",
            count,
            event.application_id,
            event.previous_status,
            event.new_status,
        )
    except Exception as e:
        db.rollback()
        logger.warning(
            "Notification for application %s (%s -> %s) dropped: %s: %s",
            event.application_id,
            event.previous_status,
            event.new_status,
            type(e).__name__,
            e,
        )
    finally:
        db.close()


def _deliver_score(db: Session, event: ScoreEvent) -> int:
    application = db.query(JobApplication).filter(JobApplication.id == event.application_id).first()
    if not application:
        raise NotificationFailure(f"Application {event.application_id} no longer exists")

    candidate = application.candidate
    job = application.job
    candidate_name = (candidate.full_name if candidate else None) or "Candidate"
    job_title = (job.title if job else None) or "the position"

    rows = [
        Notification(
            user_id=int(user.id),
            title="Candidate Score Updated",
            message=f"{candidate_name} now scores {event.new_total:.1f} for {job_title}",
            type="Info",
            related_entity_type="AutomatedScore",
            related_entity_id=int(application.id),
        )
        for user in _users_in_roles(db, ("hr", "recruiter"))
    ]
    db.add_all(rows)
    db.commit()
    return len(rows)


def dispatch_score_event(event: ScoreEvent) -> None:
    """Background worker for a changed score total. Never raises."""
    db = database.new_session()
    try:
        count = _deliver_score(db, event)
        logger.info("Dispatched %s score notification(s) for application %s", count, event.application_id)
    except Exception as e:
        db.rollback()
        logger.warning(
            "Score notification for application %s dropped: %s: %s",
            event.application_id,
            type(e).__name__,
            e,
        )
    finally:
        db.close()


def notification_to_public(n: Notification) -> dict:
    return {
        "id": int(n.id),
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "related_entity_type": n.related_entity_type,
        "related_entity_id": n.related_entity_id,
        "is_read": bool(n.is_read),
        "created_at": n.created_at.isoformat() if isinstance(n.created_at, datetime) else n.created_at,
    }

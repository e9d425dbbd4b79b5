"""
Application status lookup.

Statuses are rows, not an enum: admins can add new ones at runtime and every
reference goes through the id.
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import DEFAULT_APPLICATION_STATUSES, INITIAL_APPLICATION_STATUS
from ..models.application import ApplicationStatus
from ..utils.error_handlers import ConflictError, NotFoundError, get_error_message
from ..utils.validation import validate_string_field

logger = logging.getLogger(__name__)


def get_status(db: Session, status_id: int) -> ApplicationStatus:
    status = db.query(ApplicationStatus).filter(ApplicationStatus.id == int(status_id)).first()
    if not status:
        raise NotFoundError(get_error_message("status_not_found"))
    return status


def find_status_by_label(db: Session, label: str) -> ApplicationStatus | None:
    return (
        db.query(ApplicationStatus)
        .filter(func.lower(ApplicationStatus.status) == (label or "").strip().lower())
        .first()
    )


def get_or_create_status(db: Session, label: str) -> ApplicationStatus:
    status = find_status_by_label(db, label)
    if status:
        return status
    status = ApplicationStatus(status=label.strip())
    db.add(status)
    db.flush()
    return status


def get_initial_status(db: Session) -> ApplicationStatus:
    return get_or_create_status(db, INITIAL_APPLICATION_STATUS)


def list_statuses(db: Session) -> list[ApplicationStatus]:
    return db.query(ApplicationStatus).order_by(ApplicationStatus.id).all()


def create_status(db: Session, label: str) -> ApplicationStatus:
    clean = validate_string_field(label, "Status", min_length=1, max_length=50)
    if find_status_by_label(db, clean):
        raise ConflictError(f"Status '{clean}' already exists")
    status = ApplicationStatus(status=clean)
    db.add(status)
    db.commit()
    db.refresh(status)
    logger.info("Created application status %s (%s)", status.id, status.status)
    return status


def seed_statuses(db: Session) -> None:
    for label in DEFAULT_APPLICATION_STATUSES:
        get_or_create_status(db, label)
    get_initial_status(db)
    db.commit()


def status_to_public(status: ApplicationStatus) -> dict:
    return {"id": int(status.id), "status": status.status}

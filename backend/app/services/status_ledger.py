"""
Append-only status history of job applications.

Rows are only ever inserted here; nothing updates or deletes them.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..models.application import ApplicationStatus, ApplicationStatusHistory, JobApplication


def append_entry(
    db: Session,
    *,
    application: JobApplication,
    new_status: ApplicationStatus,
    previous_label: str | None,
    actor_id: int | None,
    note: str | None,
) -> ApplicationStatusHistory:
    """Stage one ledger row in the session; the caller commits."""
    entry = ApplicationStatusHistory(
        application_id=int(application.id),
        status_id=int(new_status.id),
        from_status=previous_label,
        to_status=new_status.status,
        changed_at=datetime.now(timezone.utc),
        changed_by=actor_id,
        note=note,
    )
    db.add(entry)
    return entry


def list_entries(db: Session, application_id: int) -> list[ApplicationStatusHistory]:
    # Timestamp order; equal timestamps fall back to insertion order.
    return (
        db.query(ApplicationStatusHistory)
        .filter(ApplicationStatusHistory.application_id == int(application_id))
        .order_by(ApplicationStatusHistory.changed_at.asc(), ApplicationStatusHistory.id.asc())
        .all()
    )


def latest_entry(db: Session, application_id: int) -> ApplicationStatusHistory | None:
    return (
        db.query(ApplicationStatusHistory)
        .filter(ApplicationStatusHistory.application_id == int(application_id))
        .order_by(ApplicationStatusHistory.changed_at.desc(), ApplicationStatusHistory.id.desc())
        .first()
    )


def entry_to_public(entry: ApplicationStatusHistory) -> dict:
    return {
        "id": int(entry.id),
        "status_id": int(entry.status_id),
        "from_status": entry.from_status,
        "to_status": entry.to_status,
        "note": entry.note,
        "changed_by": entry.changed_by,
        "changed_at": entry.changed_at.isoformat() if isinstance(entry.changed_at, datetime) else entry.changed_at,
    }

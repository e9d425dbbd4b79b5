import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.application import (
    ApplicationCreateIn,
    ApplicationStatusIn,
    ApplicationStatusUpdateIn,
    BulkApplicationActionIn,
    ScreenByScoreIn,
)
from ..services import status_ledger
from ..services.application_status import create_status, list_statuses, status_to_public
from ..services.bulk_transitions import apply_bulk, screen_by_score
from ..services.notifications import NotificationDispatcher
from ..services.transitions import (
    application_to_public,
    create_application,
    get_history,
    get_live_application,
    list_applications,
    list_shortlisted,
    list_status_counts,
    soft_delete_application,
    transition_application,
)
from ..utils.dependencies import current_actor_id
from ..utils.error_handlers import AppError, handle_database_error, to_http_exception
from ..utils.roles import admin_only, hr_only
from ..utils.validation import validate_integer_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])
status_router = APIRouter(prefix="/application-statuses", tags=["Application Statuses"])


@router.post("")
def create(
    body: ApplicationCreateIn,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    try:
        application = create_application(
            db,
            job_id=body.job_id,
            candidate_id=body.candidate_id,
            actor_id=current_actor_id(user),
        )
    except AppError as e:
        raise to_http_exception(e)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating application")
    return {"success": True, "application": application_to_public(application)}


@router.get("")
def list_all(
    job_id: int | None = None,
    candidate_id: int | None = None,
    status_id: int | None = None,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    rows = list_applications(db, job_id=job_id, candidate_id=candidate_id, status_id=status_id)
    return {"success": True, "applications": [application_to_public(a) for a in rows]}


@router.post("/bulk-update")
def bulk_update(
    body: BulkApplicationActionIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    """
    Move many applications to one status. Unknown ids are skipped; the
    response reports how many applications ended up in the target status.
    """
    try:
        result = apply_bulk(
            db,
            body.application_ids,
            body.status_id,
            note=body.note,
            actor_id=current_actor_id(user),
            dispatcher=NotificationDispatcher(background_tasks),
        )
    except AppError as e:
        raise to_http_exception(e)
    except OperationalError as e:
        raise handle_database_error(e, "bulk status update")
    return {"success": True, **result.to_public()}


@router.post("/screen-by-score")
def screen(
    body: ScreenByScoreIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    try:
        result = screen_by_score(
            db,
            job_id=body.job_id,
            min_score=body.min_score,
            max_score=body.max_score,
            new_status_id=body.status_id,
            note=body.note,
            actor_id=current_actor_id(user),
            dispatcher=NotificationDispatcher(background_tasks),
        )
    except AppError as e:
        raise to_http_exception(e)
    except OperationalError as e:
        raise handle_database_error(e, "screening by score")
    return {"success": True, **result.to_public()}


@router.get("/job/{job_id}/statistics")
def job_statistics(
    job_id: int,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    """Live application counts of a job, per status label."""
    try:
        counts = list_status_counts(db, job_id)
    except AppError as e:
        raise to_http_exception(e)
    return {"success": True, "job_id": int(job_id), "total": sum(counts.values()), "statistics": counts}


@router.get("/job/{job_id}/shortlisted")
def job_shortlisted(
    job_id: int,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    try:
        rows = list_shortlisted(db, job_id)
    except AppError as e:
        raise to_http_exception(e)
    return {"success": True, "applications": [application_to_public(a) for a in rows]}


@router.get("/{application_id}")
def read(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    try:
        application = get_live_application(db, application_id)
    except AppError as e:
        raise to_http_exception(e)
    history = get_history(db, application.id)
    return {"success": True, "application": application_to_public(application, history=history)}


@router.put("/{application_id}")
def update_status(
    application_id: int,
    body: ApplicationStatusUpdateIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    """Move one application to another status. Same status is accepted and changes nothing."""
    try:
        validate_integer_field(application_id, "Application ID", min_value=1)
        result = transition_application(
            db,
            application_id,
            body.status_id,
            actor_id=current_actor_id(user),
            note=body.note,
            dispatcher=NotificationDispatcher(background_tasks),
        )
    except AppError as e:
        raise to_http_exception(e)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating application status")
    return {
        "success": True,
        "changed": result.changed,
        "application": application_to_public(result.application),
    }


@router.delete("/{application_id}")
def delete(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    try:
        soft_delete_application(db, application_id, actor_id=current_actor_id(user))
    except AppError as e:
        raise to_http_exception(e)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "deleting application")
    return {"success": True, "message": "Application deleted"}


@router.get("/{application_id}/history")
def history(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    try:
        entries = get_history(db, application_id)
    except AppError as e:
        raise to_http_exception(e)
    return {
        "success": True,
        "application_id": int(application_id),
        "history": [status_ledger.entry_to_public(e) for e in entries],
    }


@status_router.get("")
def statuses(db: Session = Depends(get_db), user=Depends(hr_only)):
    return {"success": True, "statuses": [status_to_public(s) for s in list_statuses(db)]}


@status_router.post("")
def add_status(
    body: ApplicationStatusIn,
    db: Session = Depends(get_db),
    user=Depends(admin_only),
):
    try:
        status = create_status(db, body.status)
    except AppError as e:
        raise to_http_exception(e)
    return {"success": True, "status": status_to_public(status)}

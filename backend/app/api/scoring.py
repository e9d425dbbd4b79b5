import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.job import Job
from ..schemas.scoring import ScoringConfigurationIn
from ..services.notifications import NotificationDispatcher
from ..services.score_config import config_to_public, create_or_update, get_active_config
from ..services.scoring_engine import compute_score, get_rankings_for_job, get_score, score_to_public
from ..utils.error_handlers import AppError, get_error_message, handle_database_error, to_http_exception
from ..utils.roles import hr_only

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scoring"])


@router.post("/score/{application_id}")
def calculate_score(
    application_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    """Recompute the automated score of an application and return the breakdown."""
    try:
        row = compute_score(db, application_id, dispatcher=NotificationDispatcher(background_tasks))
    except AppError as e:
        raise to_http_exception(e)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "calculating score")
    return {"success": True, "score": score_to_public(row)}


@router.get("/score/{application_id}")
def read_score(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    try:
        row = get_score(db, application_id)
    except AppError as e:
        raise to_http_exception(e)
    return {"success": True, "score": score_to_public(row)}


@router.get("/rankings/{job_id}")
def job_rankings(
    job_id: int,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    job = db.query(Job).filter(Job.id == int(job_id), Job.is_deleted.is_(False)).first()
    if not job:
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))

    rows = get_rankings_for_job(db, job_id)
    items = []
    for rank, row in enumerate(rows, start=1):
        item = score_to_public(row)
        item["rank"] = rank
        items.append(item)
    return {"success": True, "job": {"id": job.id, "title": job.title}, "rankings": items}


@router.get("/scoring/configuration/{position_id}")
def read_configuration(
    position_id: int,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    config = get_active_config(db, position_id)
    if not config:
        raise HTTPException(status_code=404, detail=get_error_message("config_not_found"))
    return {"success": True, "configuration": config_to_public(config)}


@router.post("/scoring/configuration/{position_id}")
def write_configuration(
    position_id: int,
    body: ScoringConfigurationIn,
    db: Session = Depends(get_db),
    user=Depends(hr_only),
):
    """Create or replace the active weights of a position. Weights must total 100."""
    try:
        config = create_or_update(db, position_id, body.model_dump())
    except AppError as e:
        raise to_http_exception(e)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "saving scoring configuration")
    return {"success": True, "configuration": config_to_public(config)}

"""
Apply one status transition to many applications.

There is no wrapping transaction: every application is committed on its
own, so one bad item never rolls back the others and a crash mid-batch can
leave the batch partially applied. Unknown, deleted or malformed ids are
skipped, not treated as errors. Only an empty id list is rejected.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.application import JobApplication
from ..models.scoring import AutomatedScore
from ..utils.error_handlers import ValidationError, get_error_message
from ..utils.validation import validate_id_list
from .application_status import get_status
from .transitions import apply_transition

logger = logging.getLogger(__name__)


@dataclass
class BulkTransitionResult:
    updated_count: int = 0
    updated_ids: list[int] = field(default_factory=list)
    # Already in the target status: counted as updated, but no ledger row or event.
    unchanged_ids: list[int] = field(default_factory=list)
    # Unknown, soft-deleted or malformed ids; malformed entries are echoed back as sent.
    skipped_ids: list = field(default_factory=list)
    failed_ids: list[int] = field(default_factory=list)

    def to_public(self) -> dict:
        return {
            "updated_count": self.updated_count,
            "updated_ids": self.updated_ids,
            "unchanged_ids": self.unchanged_ids,
            "skipped_ids": self.skipped_ids,
            "failed_ids": self.failed_ids,
        }


def apply_bulk(
    db: Session,
    application_ids: list[int],
    new_status_id: int,
    *,
    note: str | None = None,
    actor_id: int | None = None,
    dispatcher=None,
) -> BulkTransitionResult:
    ids, invalid = validate_id_list(application_ids)
    new_status = get_status(db, new_status_id)

    found = {
        int(a.id): a
        for a in (
            db.query(JobApplication)
            .filter(JobApplication.id.in_(ids), JobApplication.is_deleted.is_(False))
            .all()
        )
    }

    result = BulkTransitionResult(skipped_ids=list(invalid))
    for application_id in ids:
        application = found.get(application_id)
        if application is None:
            result.skipped_ids.append(application_id)
            continue

        try:
            item = apply_transition(db, application, new_status, actor_id=actor_id, note=note)
            if item.changed:
                db.commit()
        except OperationalError:
            # Store unreachable: nothing else in the batch can succeed either.
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Bulk transition of application %s failed: %s", application_id, e)
            result.failed_ids.append(application_id)
            continue

        result.updated_count += 1
        if not item.changed:
            result.unchanged_ids.append(application_id)
            continue

        result.updated_ids.append(application_id)
        if dispatcher is not None:
            dispatcher.enqueue(item.event)

    logger.info(
        "Bulk transition to %s: %s updated (%s unchanged), %s skipped, %s failed",
        new_status.status,
        result.updated_count,
        len(result.unchanged_ids),
        len(result.skipped_ids),
        len(result.failed_ids),
    )
    return result


def screen_by_score(
    db: Session,
    *,
    job_id: int,
    min_score: float,
    max_score: float,
    new_status_id: int,
    note: str | None = None,
    actor_id: int | None = None,
    dispatcher=None,
) -> BulkTransitionResult:
    """
    Move every live application of a job whose stored total lies in
    [min_score, max_score] to the target status.
    """
    if min_score > max_score:
        raise ValidationError(get_error_message("invalid_score_range"))
    get_status(db, new_status_id)

    ids = [
        int(application_id)
        for (application_id,) in (
            db.query(AutomatedScore.application_id)
            .join(JobApplication, AutomatedScore.application_id == JobApplication.id)
            .filter(
                JobApplication.job_id == int(job_id),
                JobApplication.is_deleted.is_(False),
                AutomatedScore.is_deleted.is_(False),
                AutomatedScore.total_weighted_score >= float(min_score),
                AutomatedScore.total_weighted_score <= float(max_score),
            )
            .order_by(AutomatedScore.total_weighted_score.desc())
            .all()
        )
    ]
    if not ids:
        return BulkTransitionResult()
    return apply_bulk(
        db,
        ids,
        new_status_id,
        note=note,
        actor_id=actor_id,
        dispatcher=dispatcher,
    )

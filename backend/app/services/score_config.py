"""
Per-position scoring weights.

One active configuration per position. Writes through `create_or_update`
are validated (weights sum to 100); the lazily created default is trusted.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from ..config import (
    DEFAULT_EDUCATION_WEIGHT,
    DEFAULT_EXPERIENCE_WEIGHT,
    DEFAULT_INTERVIEW_WEIGHT,
    DEFAULT_SKILL_MATCH_WEIGHT,
    DEFAULT_TEST_WEIGHT,
)
from ..models.position import Position
from ..models.scoring import ScoringConfiguration
from ..utils.error_handlers import NotFoundError, get_error_message
from ..utils.validation import validate_weights

logger = logging.getLogger(__name__)

WEIGHT_FIELDS = (
    "skill_match_weight",
    "experience_weight",
    "interview_weight",
    "test_weight",
    "education_weight",
)


def get_active_config(db: Session, position_id: int) -> ScoringConfiguration | None:
    return (
        db.query(ScoringConfiguration)
        .filter(
            ScoringConfiguration.position_id == int(position_id),
            ScoringConfiguration.is_active.is_(True),
            ScoringConfiguration.is_deleted.is_(False),
        )
        .order_by(ScoringConfiguration.id.desc())
        .first()
    )


def create_or_update(db: Session, position_id: int, weights: dict[str, Any]) -> ScoringConfiguration:
    """
    Validate and store the weights for a position.

    Raises ValidationError (nothing written) unless the five weights sum to 100.
    An existing active configuration is updated in place and keeps its id.
    """
    clean = validate_weights({name: weights.get(name) for name in WEIGHT_FIELDS})

    position = db.query(Position).filter(Position.id == int(position_id)).first()
    if not position:
        raise NotFoundError(get_error_message("position_not_found"))

    existing = get_active_config(db, position_id)
    if existing:
        for name, value in clean.items():
            setattr(existing, name, value)
        existing.updated_at = datetime.now(timezone.utc)
        config = existing
    else:
        config = ScoringConfiguration(position_id=int(position_id), is_active=True, **clean)
        db.add(config)

    db.commit()
    db.refresh(config)
    logger.info("Scoring configuration %s stored for position %s", config.id, position_id)
    return config


def get_or_create_default(db: Session, position_id: int) -> ScoringConfiguration:
    """Active config for the position, persisting the built-in default when there is none."""
    config = get_active_config(db, position_id)
    if config:
        return config

    config = ScoringConfiguration(
        position_id=int(position_id),
        skill_match_weight=DEFAULT_SKILL_MATCH_WEIGHT,
        experience_weight=DEFAULT_EXPERIENCE_WEIGHT,
        interview_weight=DEFAULT_INTERVIEW_WEIGHT,
        test_weight=DEFAULT_TEST_WEIGHT,
        education_weight=DEFAULT_EDUCATION_WEIGHT,
        is_active=True,
    )
    db.add(config)
    db.commit()
    db.refresh(config)
    logger.info("Created default scoring configuration for position %s", position_id)
    return config


def config_to_public(config: ScoringConfiguration) -> dict:
    return {
        "id": int(config.id),
        "position_id": int(config.position_id),
        "skill_match_weight": float(config.skill_match_weight),
        "experience_weight": float(config.experience_weight),
        "interview_weight": float(config.interview_weight),
        "test_weight": float(config.test_weight),
        "education_weight": float(config.education_weight),
        "is_active": bool(config.is_active),
    }

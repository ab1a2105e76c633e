"""
Conversion score → étoiles et lecture/écriture des seuils configurés par l'admin.
"""

import logging
from typing import Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.admin_config import AdminConfig
from app.schemas.scoring import DEFAULT_THRESHOLDS, ScoringThresholds

logger = logging.getLogger(__name__)

# En dessous de ce score, la phrase est signalée comme à retravailler (bilans enseignant et famille)
LOW_SCORE_THRESHOLD = 70


def score_to_stars(score: Union[int, float], thresholds: ScoringThresholds) -> int:
    """
    1 étoile si score < one_star_max,
    2 étoiles si one_star_max ≤ score ≤ two_star_max,
    3 étoiles au-delà.
    """
    if score < thresholds.one_star_max:
        return 1
    if score <= thresholds.two_star_max:
        return 2
    return 3


def _latest_config(db: Session):
    return db.execute(
        select(AdminConfig).order_by(AdminConfig.created_at.desc()).limit(1)
    ).scalar()


def get_scoring_thresholds(db: Session) -> ScoringThresholds:
    """Seuils de la configuration la plus récente, ou les valeurs par défaut (70 / 84)."""
    config = _latest_config(db)
    if config is None:
        return DEFAULT_THRESHOLDS
    return ScoringThresholds.model_validate(config.scoring_thresholds)


def save_scoring_thresholds(db: Session, thresholds: ScoringThresholds) -> ScoringThresholds:
    """Met à jour la configuration la plus récente, ou en crée une."""
    config = _latest_config(db)
    if config is None:
        db.add(AdminConfig(scoring_thresholds=thresholds.model_dump()))
    else:
        config.scoring_thresholds = thresholds.model_dump()
    db.commit()

    logger.info(
        "Seuils d'étoiles mis à jour : one_star_max=%d, two_star_max=%d",
        thresholds.one_star_max, thresholds.two_star_max,
    )
    return thresholds

"""
Router de configuration des seuils d'étoiles (espace admin).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth import require_admin
from app.database import get_db
from app.schemas.scoring import ScoringThresholds
from app.services import scoring

router = APIRouter(
    prefix="/api/v1/admin/scoring-config",
    tags=["Notation"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=ScoringThresholds, summary="Seuils d'étoiles actuels")
def get_scoring_config(db: Session = Depends(get_db)):
    """Retourne les seuils enregistrés, ou 70 / 84 par défaut."""
    return scoring.get_scoring_thresholds(db)


@router.put("", response_model=ScoringThresholds, summary="Modifier les seuils d'étoiles")
def update_scoring_config(data: ScoringThresholds, db: Session = Depends(get_db)):
    return scoring.save_scoring_thresholds(db, data)

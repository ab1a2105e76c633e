"""
Router des statistiques enseignant : tableau de bord hebdomadaire et bilan par classe-cours.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import require_teacher
from app.database import get_db
from app.schemas.auth import SessionPayload
from app.schemas.dashboard import ClassSummary, DashboardStats
from app.services import dashboard_service

router = APIRouter(prefix="/api/v1/teacher", tags=["Tableau de bord enseignant"])


@router.get("/dashboard/stats", response_model=DashboardStats, summary="Statistiques de la semaine")
def get_dashboard_stats(db: Session = Depends(get_db), session: SessionPayload = Depends(require_teacher)):
    return dashboard_service.get_dashboard_stats(db, session.teacher_id)


@router.get("/classes/{class_course_id}/summary", response_model=ClassSummary, summary="Bilan d'une classe-cours")
def get_class_summary(
    class_course_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    try:
        return dashboard_service.get_class_summary(db, session.teacher_id, class_course_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))

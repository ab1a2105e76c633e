"""
Router de l'espace famille. Aucun compte : chaque requête présente le jeton du lien.
Un jeton inconnu ou révoqué → 404 « Lien invalide. ».
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.family_portal import (
    FamilyLinkView,
    FamilyPerformance,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    ProgressHistory,
    SubmissionCreate,
    SubmissionResponse,
    WeeklyTaskView,
)
from app.services import family_portal_service

router = APIRouter(prefix="/api/v1/family", tags=["Espace famille"])

INVALID_LINK = "Lien invalide."


@router.get("/link/{token}", response_model=FamilyLinkView, summary="Ouvrir un lien famille")
def open_family_link(token: str, db: Session = Depends(get_db)):
    view = family_portal_service.get_family_view(db, token)
    if view is None:
        raise HTTPException(status_code=404, detail=INVALID_LINK)
    return view


@router.get("/weekly-task", response_model=WeeklyTaskView, summary="Devoir de la semaine")
def get_weekly_task(token: str = Query(...), db: Session = Depends(get_db)):
    """Devoir publié de la semaine courante ; contenu vide s'il n'y en a pas."""
    view = family_portal_service.get_weekly_task_view(db, token)
    if view is None:
        raise HTTPException(status_code=404, detail=INVALID_LINK)
    return view


@router.get("/submissions", response_model=List[SubmissionResponse], summary="Soumissions de la famille")
def list_submissions(token: str = Query(...), db: Session = Depends(get_db)):
    submissions = family_portal_service.list_submissions(db, token)
    if submissions is None:
        raise HTTPException(status_code=404, detail=INVALID_LINK)
    return submissions


@router.post("/submissions", response_model=SubmissionResponse, status_code=201, summary="Envoyer une tentative")
def create_submission(data: SubmissionCreate, db: Session = Depends(get_db)):
    """
    Enregistre la tentative d'un élève : score, étoiles et retour sont calculés
    à partir du transcript. Une nouvelle tentative remplace la précédente.
    """
    try:
        return family_portal_service.create_submission(db, data)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/performance", response_model=FamilyPerformance, summary="Bilan de la famille")
def get_performance(token: str = Query(...), db: Session = Depends(get_db)):
    """Moyenne, taux de complétion et phrases sous le seuil, tous devoirs confondus."""
    performance = family_portal_service.get_performance(db, token)
    if performance is None:
        raise HTTPException(status_code=404, detail=INVALID_LINK)
    return performance


@router.get("/progress-history", response_model=ProgressHistory, summary="Progression sur 8 semaines")
def get_progress_history(token: str = Query(...), db: Session = Depends(get_db)):
    history = family_portal_service.get_progress_history(db, token)
    if history is None:
        raise HTTPException(status_code=404, detail=INVALID_LINK)
    return history


@router.get(
    "/notification-preferences",
    response_model=NotificationPreferencesResponse,
    summary="Préférence d'emails de la famille",
)
def get_notification_preferences(token: str = Query(...), db: Session = Depends(get_db)):
    prefs = family_portal_service.get_notification_preferences(db, token)
    if prefs is None:
        raise HTTPException(status_code=404, detail=INVALID_LINK)
    return prefs


@router.patch(
    "/notification-preferences",
    response_model=NotificationPreferencesResponse,
    summary="Activer / désactiver les emails",
)
def update_notification_preferences(data: NotificationPreferencesUpdate, db: Session = Depends(get_db)):
    prefs = family_portal_service.update_notification_preferences(db, data)
    if prefs is None:
        raise HTTPException(status_code=404, detail=INVALID_LINK)
    return prefs

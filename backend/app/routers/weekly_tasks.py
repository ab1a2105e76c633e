"""
Router pour les devoirs hebdomadaires (espace admin).
Création, publication (avec emails aux familles), suppression et suivi des notifications.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import require_admin
from app.database import get_db
from app.schemas.auth import SessionPayload
from app.schemas.weekly_task import (
    TaskNotificationResponse,
    WeeklyTaskCreate,
    WeeklyTaskDetail,
    WeeklyTaskResponse,
)
from app.services import weekly_task_service

router = APIRouter(prefix="/api/v1/admin/weekly-tasks", tags=["Devoirs hebdomadaires"])


@router.get("", response_model=List[WeeklyTaskResponse], summary="Lister les devoirs")
def list_weekly_tasks(db: Session = Depends(get_db), _: SessionPayload = Depends(require_admin)):
    return weekly_task_service.get_weekly_tasks(db)


@router.post("", response_model=List[WeeklyTaskResponse], status_code=201, summary="Créer un devoir")
def create_weekly_task(
    data: WeeklyTaskCreate,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_admin),
):
    """
    Crée un devoir de 10 phrases pour chaque classe-cours sélectionnée.
    400 si une classe-cours est inconnue, 409 si un devoir existe déjà pour cette semaine.
    """
    try:
        created_by = weekly_task_service.resolve_task_creator(db, session)
        return weekly_task_service.create_weekly_tasks(db, data, created_by)
    except ValueError as e:
        msg = str(e)
        if "existe déjà" in msg:
            raise HTTPException(status_code=409, detail=msg)
        raise HTTPException(status_code=400, detail=msg)


@router.get("/{weekly_task_id}", response_model=WeeklyTaskDetail, summary="Détail d'un devoir")
def get_weekly_task(
    weekly_task_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: SessionPayload = Depends(require_admin),
):
    task = weekly_task_service.get_weekly_task(db, weekly_task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Devoir introuvable.")
    return task


@router.post("/{weekly_task_id}/publish", response_model=WeeklyTaskDetail, summary="Publier un devoir")
def publish_weekly_task(
    weekly_task_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: SessionPayload = Depends(require_admin),
):
    """Publie le devoir et envoie l'email « nouveau devoir » aux familles de la classe-cours."""
    task = weekly_task_service.publish_weekly_task(db, weekly_task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Devoir introuvable.")
    return task


@router.delete("/{weekly_task_id}", status_code=204, summary="Supprimer un devoir")
def delete_weekly_task(
    weekly_task_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: SessionPayload = Depends(require_admin),
):
    if not weekly_task_service.delete_weekly_task(db, weekly_task_id):
        raise HTTPException(status_code=404, detail="Devoir introuvable.")


@router.get(
    "/{weekly_task_id}/notifications",
    response_model=List[TaskNotificationResponse],
    summary="Suivi des emails « nouveau devoir »",
)
def list_task_notifications(
    weekly_task_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: SessionPayload = Depends(require_admin),
):
    notifications = weekly_task_service.get_task_notifications(db, weekly_task_id)
    if notifications is None:
        raise HTTPException(status_code=404, detail="Devoir introuvable.")
    return notifications

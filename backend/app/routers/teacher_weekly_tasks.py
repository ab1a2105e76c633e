"""
Router des devoirs hebdomadaires côté enseignant : consultation, publication groupée,
duplication et copie des phrases, limitées aux classes-cours affectées.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import require_teacher
from app.database import get_db
from app.schemas.auth import SessionPayload
from app.schemas.weekly_task import (
    BulkPublishRequest,
    BulkPublishResult,
    TaskItemsCopied,
    TaskItemsCopy,
    WeeklyTaskDetail,
    WeeklyTaskDuplicate,
)
from app.services import weekly_task_service

router = APIRouter(prefix="/api/v1/teacher/weekly-tasks", tags=["Devoirs (enseignant)"])


def _http_error(e: Exception) -> HTTPException:
    """PermissionError → 403 ; ValueError : introuvable → 404, doublon → 409, sinon 400."""
    msg = str(e)
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=msg)
    if "introuvable" in msg:
        return HTTPException(status_code=404, detail=msg)
    if "existe déjà" in msg:
        return HTTPException(status_code=409, detail=msg)
    return HTTPException(status_code=400, detail=msg)


@router.get("", response_model=List[WeeklyTaskDetail], summary="Devoirs de mes classes-cours")
def list_my_weekly_tasks(db: Session = Depends(get_db), session: SessionPayload = Depends(require_teacher)):
    return weekly_task_service.get_teacher_weekly_tasks(db, session.teacher_id)


@router.post("/bulk-publish", response_model=BulkPublishResult, summary="Publier plusieurs devoirs")
def bulk_publish(
    data: BulkPublishRequest,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    """Tout ou rien : 403 si un devoir demandé n'appartient pas aux classes-cours de l'enseignant."""
    try:
        return weekly_task_service.bulk_publish_weekly_tasks(db, session.teacher_id, data)
    except (PermissionError, ValueError) as e:
        raise _http_error(e)


@router.post("/duplicate", response_model=WeeklyTaskDetail, status_code=201, summary="Dupliquer un devoir")
def duplicate(
    data: WeeklyTaskDuplicate,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    """Le nouveau devoir est créé en brouillon."""
    try:
        return weekly_task_service.duplicate_weekly_task(db, session.teacher_id, data)
    except (PermissionError, ValueError) as e:
        raise _http_error(e)


@router.post("/copy-items", response_model=TaskItemsCopied, summary="Copier les phrases d'un devoir")
def copy_items(
    data: TaskItemsCopy,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    try:
        return weekly_task_service.copy_task_items(db, session.teacher_id, data)
    except (PermissionError, ValueError) as e:
        raise _http_error(e)

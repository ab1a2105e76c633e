"""
Router pour la gestion des enseignants (espace admin).
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import require_admin
from app.database import get_db
from app.schemas.teacher import (
    PasswordReset,
    TeacherCreate,
    TeacherResponse,
    TeacherStatusUpdate,
    TeacherUpdate,
)
from app.services import teacher_service

router = APIRouter(
    prefix="/api/v1/admin/teachers",
    tags=["Enseignants"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=List[TeacherResponse], summary="Lister les enseignants")
def list_teachers(db: Session = Depends(get_db)):
    """Retourne tous les enseignants avec les noms de leurs classes-cours."""
    return teacher_service.get_teachers(db)


@router.post("", response_model=TeacherResponse, status_code=201, summary="Créer un enseignant")
def create_teacher(data: TeacherCreate, db: Session = Depends(get_db)):
    try:
        return teacher_service.create_teacher(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/{teacher_id}", response_model=TeacherResponse, summary="Modifier un enseignant")
def update_teacher(teacher_id: uuid.UUID, data: TeacherUpdate, db: Session = Depends(get_db)):
    """Seuls les champs fournis sont modifiés ; class_course_ids remplace les affectations."""
    try:
        result = teacher_service.update_teacher(db, teacher_id, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Enseignant introuvable.")
    return result


@router.patch("/{teacher_id}/status", response_model=TeacherResponse, summary="Activer / désactiver")
def set_teacher_status(teacher_id: uuid.UUID, data: TeacherStatusUpdate, db: Session = Depends(get_db)):
    result = teacher_service.set_teacher_active(db, teacher_id, data.is_active)
    if result is None:
        raise HTTPException(status_code=404, detail="Enseignant introuvable.")
    return result


@router.post("/{teacher_id}/reset-password", status_code=204, summary="Réinitialiser le mot de passe")
def reset_password(teacher_id: uuid.UUID, data: PasswordReset, db: Session = Depends(get_db)):
    if not teacher_service.reset_password(db, teacher_id, data.password):
        raise HTTPException(status_code=404, detail="Enseignant introuvable.")


@router.delete("/{teacher_id}", status_code=204, summary="Supprimer un enseignant")
def delete_teacher(teacher_id: uuid.UUID, db: Session = Depends(get_db)):
    """Refusé (409) si l'enseignant a créé des familles ou des devoirs."""
    try:
        success = teacher_service.delete_teacher(db, teacher_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not success:
        raise HTTPException(status_code=404, detail="Enseignant introuvable.")

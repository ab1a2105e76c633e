"""
Router de l'espace enseignant : classes-cours affectées et gestion des familles
(création, modification, liens d'accès, QR code, préférences d'email).
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.auth import require_teacher
from app.database import get_db
from app.schemas.auth import SessionPayload
from app.schemas.catalog import ClassCourseResponse
from app.schemas.family import (
    FamilyCreate,
    FamilyLinkIssued,
    FamilyLinkRevoked,
    FamilyResponse,
    FamilyUpdate,
    NotificationSettingsUpdate,
)
from app.services import family_service

router = APIRouter(prefix="/api/v1/teacher", tags=["Espace enseignant"])

FAMILY_NOT_FOUND = "Famille introuvable."


@router.get("/class-courses", response_model=List[ClassCourseResponse], summary="Mes classes-cours")
def list_my_class_courses(db: Session = Depends(get_db), session: SessionPayload = Depends(require_teacher)):
    return family_service.get_teacher_class_courses(db, session.teacher_id)


@router.get("/families", response_model=List[FamilyResponse], summary="Lister les familles")
def list_families(db: Session = Depends(get_db), session: SessionPayload = Depends(require_teacher)):
    """Familles des classes-cours de l'enseignant, avec élèves et lien actif."""
    return family_service.list_families(db, session.teacher_id)


@router.post("/families", response_model=FamilyLinkIssued, status_code=201, summary="Créer une famille")
def create_family(
    data: FamilyCreate,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    """Crée la famille et ses élèves, puis retourne le premier lien d'accès."""
    try:
        return family_service.create_family(db, session.teacher_id, data)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.put("/families/{family_id}", response_model=FamilyResponse, summary="Modifier une famille")
def update_family(
    family_id: uuid.UUID,
    data: FamilyUpdate,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    result = family_service.update_family(db, session.teacher_id, family_id, data)
    if result is None:
        raise HTTPException(status_code=404, detail=FAMILY_NOT_FOUND)
    return result


@router.patch(
    "/families/{family_id}/notification-settings",
    response_model=FamilyResponse,
    summary="Email et préférence de notification",
)
def update_notification_settings(
    family_id: uuid.UUID,
    data: NotificationSettingsUpdate,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    result = family_service.update_notification_settings(db, session.teacher_id, family_id, data)
    if result is None:
        raise HTTPException(status_code=404, detail=FAMILY_NOT_FOUND)
    return result


@router.post("/families/{family_id}/reset-link", response_model=FamilyLinkIssued, summary="Réémettre le lien")
def reset_family_link(
    family_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    """Émet un nouveau lien ; l'ancien est révoqué."""
    result = family_service.reset_family_link(db, session.teacher_id, family_id)
    if result is None:
        raise HTTPException(status_code=404, detail=FAMILY_NOT_FOUND)
    return result


@router.delete("/families/{family_id}/link", response_model=FamilyLinkRevoked, summary="Révoquer le lien")
def revoke_family_link(
    family_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    result = family_service.revoke_family_link(db, session.teacher_id, family_id)
    if result is None:
        raise HTTPException(status_code=404, detail=FAMILY_NOT_FOUND)
    return result


@router.get(
    "/families/{family_id}/link-qr",
    summary="QR code du lien famille",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_family_link_qr(
    family_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionPayload = Depends(require_teacher),
):
    """Retourne l'image PNG du QR code encodant l'URL du lien actif (409 si aucun lien actif)."""
    try:
        png = family_service.get_family_link_qr(db, session.teacher_id, family_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if png is None:
        raise HTTPException(status_code=404, detail=FAMILY_NOT_FOUND)
    return Response(content=png, media_type="image/png")

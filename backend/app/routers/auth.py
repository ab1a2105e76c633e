"""
Router d'authentification : connexion admin (identifiants d'environnement ou enseignant admin),
connexion enseignant et déconnexion. Les tentatives de connexion sont limitées par IP.
"""

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.auth import clear_session, set_session
from app.config import settings
from app.database import get_db
from app.rate_limit import check_rate_limit, reset_rate_limit
from app.schemas.auth import AdminLogin, LoginResponse, TeacherLogin
from app.services import teacher_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Authentification"])


def _same(given: str, expected: str) -> bool:
    """Comparaison à temps constant ; compare_digest refuse les str non ASCII."""
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


@router.post("/admin/login", response_model=LoginResponse, summary="Connexion administrateur")
def admin_login(data: AdminLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Accepte soit ADMIN_USERNAME / ADMIN_PASSWORD, soit l'email et le mot de passe
    d'un enseignant marqué administrateur.
    """
    check_rate_limit(request)

    env_ok = _same(data.username, settings.ADMIN_USERNAME) and _same(data.password, settings.ADMIN_PASSWORD)
    if env_ok:
        reset_rate_limit(request)
        set_session(response, "admin")
        logger.info("Connexion admin (identifiants d'environnement)")
        return LoginResponse(role="admin")

    teacher = teacher_service.authenticate_teacher(db, data.username, data.password)
    if teacher is None or not teacher.is_admin:
        raise HTTPException(status_code=401, detail="Identifiants invalides.")

    reset_rate_limit(request)
    set_session(response, "admin", teacher.id)
    logger.info("Connexion admin de l'enseignant %s", teacher.id)
    return LoginResponse(role="admin", teacher_id=teacher.id)


@router.post("/teacher/login", response_model=LoginResponse, summary="Connexion enseignant")
def teacher_login(data: TeacherLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """Un enseignant administrateur reçoit le rôle admin."""
    check_rate_limit(request)

    teacher = teacher_service.authenticate_teacher(db, str(data.email), data.password)
    if teacher is None:
        raise HTTPException(status_code=401, detail="Identifiants invalides.")

    reset_rate_limit(request)
    role = "admin" if teacher.is_admin else "teacher"
    set_session(response, role, teacher.id)
    logger.info("Connexion enseignant %s (rôle %s)", teacher.id, role)
    return LoginResponse(role=role, teacher_id=teacher.id)


@router.post("/logout", status_code=204, summary="Déconnexion")
def logout(response: Response):
    clear_session(response)

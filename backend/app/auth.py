"""
Authentification par cookie de session signé (admin / enseignant).

Format du cookie : base64url(payload JSON).signature_hmac_sha256_hex
Le payload contient le rôle, l'identifiant enseignant éventuel et l'expiration.
Les familles ne passent pas par ici : elles s'authentifient avec leur jeton de lien.
"""

import base64
import hashlib
import hmac
import json
import time
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response
from pydantic import ValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from app.config import settings
from app.schemas.auth import SessionPayload, SessionRole


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def _sign(content: str) -> str:
    return hmac.new(settings.SESSION_SECRET.encode("utf-8"), content.encode("utf-8"), hashlib.sha256).hexdigest()


def encode_session(payload: SessionPayload) -> str:
    """Sérialise et signe un payload de session."""
    raw = payload.model_dump_json(exclude_none=True).encode("utf-8")
    base = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return f"{base}.{_sign(base)}"


def decode_session(token: str, now: Optional[int] = None) -> Optional[SessionPayload]:
    """
    Vérifie la signature et l'expiration d'un cookie de session.
    Retourne None si le cookie est mal formé, falsifié ou expiré.
    """
    base, _, signature = token.partition(".")
    if not base or not signature:
        return None
    if not hmac.compare_digest(_sign(base).encode("ascii"), signature.encode("utf-8")):
        return None

    try:
        raw = base64.urlsafe_b64decode(base + "=" * (-len(base) % 4))
        payload = SessionPayload.model_validate(json.loads(raw))
    except (ValueError, ValidationError):
        return None

    if payload.exp <= (now if now is not None else int(time.time())):
        return None
    return payload


def set_session(response: Response, role: SessionRole, teacher_id: Optional[uuid.UUID] = None) -> SessionPayload:
    """Pose le cookie de session (HttpOnly, SameSite=Lax, Secure en production) valable 24 h."""
    payload = SessionPayload(
        role=role,
        teacher_id=teacher_id,
        exp=int(time.time()) + settings.SESSION_TTL_SECONDS,
    )
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        encode_session(payload),
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.ENV == "production",
        path="/",
    )
    return payload


def clear_session(response: Response) -> None:
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")


def get_session(request: Request) -> Optional[SessionPayload]:
    """Dépendance FastAPI : session courante ou None."""
    raw = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return decode_session(raw) if raw else None


def require_admin(session: Optional[SessionPayload] = Depends(get_session)) -> SessionPayload:
    """Dépendance FastAPI : 401 si l'utilisateur n'est pas administrateur."""
    if session is None or session.role != "admin":
        raise HTTPException(status_code=401, detail="Non autorisé.")
    return session


def require_teacher(session: Optional[SessionPayload] = Depends(get_session)) -> SessionPayload:
    """
    Dépendance FastAPI : 401 sauf enseignant (ou admin) rattaché à une fiche enseignant.
    Un admin connecté via ADMIN_USERNAME n'a pas de teacher_id et est donc refusé.
    """
    if session is None or session.role not in ("teacher", "admin") or session.teacher_id is None:
        raise HTTPException(status_code=401, detail="Non autorisé.")
    return session

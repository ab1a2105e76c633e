"""
Service métier pour le cycle de vie des liens famille.

Un lien famille permet à un parent de consulter et soumettre les devoirs de ses enfants
sans compte. Un seul lien actif par famille : émettre un nouveau lien révoque le précédent.

Stockage :
  - token_hash : jeton chiffré (AES-256-GCM), permet de le réafficher à l'enseignant
  - token_hmac : HMAC déterministe, permet de retrouver le lien à partir du jeton présenté
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.family import LINK_ACTIVE, LINK_REVOKED, FamilyLink
from app.schemas.family_portal import ResolvedFamilyLink
from app.services.security import (
    InvalidEncryptedToken,
    create_token,
    decrypt_token,
    encrypt_token,
    hmac_token,
)

logger = logging.getLogger(__name__)


def build_link_url(token: str) -> str:
    """URL publique à partager avec les parents (email, QR code)."""
    return f"{settings.APP_BASE_URL.rstrip('/')}/family/{token}"


def _revoke_active_links(db: Session, family_id: uuid.UUID) -> int:
    result = db.execute(
        update(FamilyLink)
        .where(
            FamilyLink.family_id == family_id,
            FamilyLink.status == LINK_ACTIVE,
        )
        .values(status=LINK_REVOKED)
    )
    return result.rowcount or 0


def issue_family_link(db: Session, family_id: uuid.UUID) -> str:
    """
    Émet un nouveau lien pour la famille et révoque les liens actifs existants.
    Retourne le jeton en clair (seule occasion où il quitte le serveur non chiffré,
    hormis get_active_family_token).
    """
    revoked = _revoke_active_links(db, family_id)

    token = create_token()
    db.add(
        FamilyLink(
            family_id=family_id,
            token_hash=encrypt_token(token),
            token_hmac=hmac_token(token),
            status=LINK_ACTIVE,
        )
    )
    db.commit()

    logger.info("Lien famille émis pour %s (%d lien(s) révoqué(s))", family_id, revoked)
    return token


def revoke_family_links(db: Session, family_id: uuid.UUID) -> int:
    """Révoque tous les liens actifs d'une famille sans en émettre de nouveau. Retourne le nombre révoqué."""
    revoked = _revoke_active_links(db, family_id)
    db.commit()
    logger.info("Famille %s : %d lien(s) révoqué(s)", family_id, revoked)
    return revoked


def resolve_family_by_token(db: Session, token: str) -> Optional[ResolvedFamilyLink]:
    """
    Retrouve le lien actif correspondant au jeton présenté, ou None.

    La mise à jour de last_used_at ne doit jamais faire échouer la résolution :
    une erreur BDD à cette étape est journalisée puis ignorée.
    """
    link = db.execute(
        select(FamilyLink)
        .where(
            FamilyLink.token_hmac == hmac_token(token),
            FamilyLink.status == LINK_ACTIVE,
        )
        .limit(1)
    ).scalar()

    if link is None:
        return None

    resolved = ResolvedFamilyLink(id=link.id, family_id=link.family_id, status=link.status)

    try:
        link.last_used_at = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Échec de la mise à jour de last_used_at pour le lien %s : %s", resolved.id, exc)

    return resolved


def get_active_family_token(db: Session, family_id: uuid.UUID) -> Optional[str]:
    """
    Retourne le jeton en clair du lien actif le plus récent de la famille.
    None si aucun lien actif ou si le déchiffrement échoue (ex. SESSION_SECRET changé).
    """
    token_hash = db.execute(
        select(FamilyLink.token_hash)
        .where(
            FamilyLink.family_id == family_id,
            FamilyLink.status == LINK_ACTIVE,
        )
        .order_by(FamilyLink.created_at.desc())
        .limit(1)
    ).scalar()

    if token_hash is None:
        return None

    try:
        return decrypt_token(token_hash)
    except InvalidEncryptedToken:
        logger.warning("Lien actif de la famille %s indéchiffrable", family_id)
        return None


def backfill_token_hmac(db: Session) -> tuple[int, int]:
    """
    Complète token_hmac pour les liens créés avant l'index HMAC.
    Les lignes indéchiffrables sont ignorées (avertissement).
    Retourne (nombre mis à jour, nombre de lignes sans HMAC).
    """
    links = db.execute(
        select(FamilyLink).where(FamilyLink.token_hmac.is_(None))
    ).scalars().all()

    logger.info("%d lien(s) famille sans token_hmac", len(links))

    updated = 0
    for link in links:
        try:
            token = decrypt_token(link.token_hash)
        except InvalidEncryptedToken:
            logger.warning("Lien %s ignoré : déchiffrement impossible", link.id)
            continue
        link.token_hmac = hmac_token(token)
        updated += 1

    if updated:
        db.commit()

    logger.info("Backfill token_hmac : %d/%d lien(s) mis à jour", updated, len(links))
    return updated, len(links)

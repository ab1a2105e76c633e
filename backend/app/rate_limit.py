"""
Limitation des tentatives de connexion par adresse IP (fenêtre glissante, en mémoire).

Le stock est propre au processus : avec plusieurs workers, chaque worker compte séparément.
Le nettoyage des entrées expirées est planifié par app.scheduler.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from fastapi import HTTPException, Request

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    max_attempts: int
    window_seconds: float


def default_config() -> RateLimitConfig:
    return RateLimitConfig(
        max_attempts=settings.RATE_LIMIT_MAX_ATTEMPTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )


_store: Dict[str, List[float]] = {}
_lock = threading.Lock()


def get_client_ip(request: Request) -> str:
    """IP du client : premier élément de X-Forwarded-For, puis X-Real-IP, sinon 'unknown'."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return "unknown"


def check_rate_limit(request: Request, config: Optional[RateLimitConfig] = None) -> None:
    """Enregistre une tentative ; lève HTTPException(429) si la limite est déjà atteinte."""
    config = config or default_config()
    identifier = get_client_ip(request)
    now = time.monotonic()

    with _lock:
        attempts = [t for t in _store.get(identifier, []) if now - t < config.window_seconds]
        if len(attempts) >= config.max_attempts:
            _store[identifier] = attempts
            logger.warning("Limite de tentatives atteinte pour %s", identifier)
            raise HTTPException(status_code=429, detail="Trop de tentatives. Réessayez plus tard.")
        attempts.append(now)
        _store[identifier] = attempts


def reset_rate_limit(request: Request) -> None:
    """Efface le compteur du client (appelé après une connexion réussie)."""
    with _lock:
        _store.pop(get_client_ip(request), None)


def cleanup_rate_limit_store(window_seconds: Optional[float] = None) -> int:
    """Supprime les tentatives hors fenêtre et les clés vides. Retourne le nombre de clés supprimées."""
    window = window_seconds if window_seconds is not None else settings.RATE_LIMIT_WINDOW_SECONDS
    now = time.monotonic()
    removed = 0
    with _lock:
        for key in list(_store):
            recent = [t for t in _store[key] if now - t < window]
            if recent:
                _store[key] = recent
            else:
                del _store[key]
                removed += 1
    return removed

"""
Planificateur APScheduler :
  - résumé quotidien des exercices de la veille (familles « daily_digest »), chaque jour à DIGEST_HOUR
  - purge des compteurs de tentatives de connexion expirés, toutes les 5 minutes
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import settings
from app.database import session_scope
from app.rate_limit import cleanup_rate_limit_store

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone=settings.DEFAULT_TZ)


def _send_daily_digest_scheduled() -> None:
    """
    Tâche planifiée : envoie le résumé de la veille.
    Import local pour éviter les imports circulaires.
    """
    from app.services.notification_service import send_daily_digest

    try:
        with session_scope() as db:
            send_daily_digest(db)
    except Exception as exc:
        logger.error("Erreur lors de l'envoi du résumé quotidien : %s", exc)


def _cleanup_rate_limit_scheduled() -> None:
    removed = cleanup_rate_limit_store()
    if removed:
        logger.info("Limiteur de connexion : %d entrée(s) expirée(s) supprimée(s)", removed)


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    scheduler.add_job(
        _send_daily_digest_scheduled,
        trigger="cron",
        hour=settings.DIGEST_HOUR,
        minute=0,
        id="daily_digest",
        replace_existing=True,
    )
    scheduler.add_job(
        _cleanup_rate_limit_scheduled,
        trigger="interval",
        minutes=5,
        id="rate_limit_cleanup",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler démarré, résumé quotidien à %02d:00 (%s).", settings.DIGEST_HOUR, settings.DEFAULT_TZ)


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")

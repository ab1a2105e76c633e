"""
Service d'orchestration des notifications email aux familles.

Règles d'envoi (toutes cumulatives) :
  - la famille a une adresse email
  - la préférence fixée par l'enseignant n'est pas « none »
  - le parent n'a pas désactivé les emails depuis son espace (notification_preferences)
Puis selon le type :
  - nouveau devoir publié → toutes les familles éligibles de la classe-cours
  - exercice terminé      → préférence « all » uniquement
  - résumé quotidien      → préférence « daily_digest » uniquement
"""

import logging
import uuid
from collections import OrderedDict
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.family import NOTIFY_ALL, NOTIFY_DAILY_DIGEST, NOTIFY_NONE, Family, NotificationPreference, Student
from app.models.school_class import ClassCourse, Course, SchoolClass
from app.models.submission import Submission
from app.models.weekly_task import TASK_PUBLISHED, TaskItem, TaskNotification, WeeklyTask
from app.schemas.notification import (
    CompletionEmail,
    DailyDigestResult,
    DigestCompletion,
    PublishNotificationResult,
)
from app.services import email_service, family_link_service

logger = logging.getLogger(__name__)


def _email_enabled_by_parent(db: Session, family_id: uuid.UUID) -> bool:
    enabled = db.execute(
        select(NotificationPreference.email_enabled)
        .where(NotificationPreference.family_id == family_id)
    ).scalar()
    return True if enabled is None else bool(enabled)


def get_notification_email(db: Session, family: Family) -> Optional[str]:
    """Adresse à laquelle écrire, ou None si la famille ne doit recevoir aucun email."""
    if not family.email or family.notification_preference == NOTIFY_NONE:
        return None
    if not _email_enabled_by_parent(db, family.id):
        return None
    return family.email


def _class_course_label(db: Session, class_course_id: uuid.UUID) -> str:
    row = db.execute(
        select(SchoolClass.name, Course.name)
        .select_from(ClassCourse)
        .join(SchoolClass, SchoolClass.id == ClassCourse.class_id)
        .join(Course, Course.id == ClassCourse.course_id)
        .where(ClassCourse.id == class_course_id)
    ).first()
    return f"{row[0]} - {row[1]}" if row else ""


def _record_failure(
    result: PublishNotificationResult, notification: TaskNotification, to_email: str, exc: Exception
) -> None:
    notification.status = "failed"
    notification.error = str(exc)
    error_msg = f"Erreur envoi email {to_email} : {exc}"
    result.errors.append(error_msg)
    logger.error(error_msg)


def send_task_published_notifications(db: Session, weekly_task_id: uuid.UUID) -> PublishNotificationResult:
    """
    Envoie l'email « nouveau devoir » aux familles de la classe-cours du devoir.
    Chaque tentative est tracée dans task_notifications (sent / pending / failed).
    Une famille sans lien actif reçoit un nouveau lien (nécessaire pour l'URL du portail).
    Chaque trace est validée famille par famille : une erreur BDD n'annule que la famille en cours.

    Lève ValueError si le devoir est introuvable ou non publié.
    """
    task = db.get(WeeklyTask, weekly_task_id)
    if task is None:
        raise ValueError("Devoir introuvable.")
    if task.status != TASK_PUBLISHED:
        raise ValueError("Seul un devoir publié peut être notifié.")

    result = PublishNotificationResult(weekly_task_id=weekly_task_id, sent_count=0, skipped_count=0, errors=[])
    label = _class_course_label(db, task.class_course_id)

    families = db.execute(
        select(Family).where(Family.class_course_id == task.class_course_id)
    ).scalars().all()

    for family in families:
        to_email = get_notification_email(db, family)
        if to_email is None:
            result.skipped_count += 1
            continue

        notification = TaskNotification(weekly_task_id=task.id, family_id=family.id, status="pending")
        try:
            token = family_link_service.get_active_family_token(db, family.id)
            if token is None:
                token = family_link_service.issue_family_link(db, family.id)

            sent = email_service.send_email(
                to_email,
                f"📚 {label} 本週口說作業已發布",
                email_service.format_task_published_email(
                    parent_name=family.parent_name,
                    class_course=label,
                    week_start=task.week_start,
                    week_end=task.week_end,
                    portal_url=family_link_service.build_link_url(token),
                ),
            )
            if sent:
                notification.status = "sent"
                notification.sent_at = datetime.now(timezone.utc)
                result.sent_count += 1
            else:
                result.skipped_count += 1
        except SQLAlchemyError as exc:
            db.rollback()
            _record_failure(result, notification, to_email, exc)
        except Exception as exc:
            _record_failure(result, notification, to_email, exc)

        db.add(notification)
        db.commit()

    logger.info(
        "Devoir %s : %d email(s) envoyé(s), %d ignoré(s), %d erreur(s)",
        weekly_task_id, result.sent_count, result.skipped_count, len(result.errors),
    )
    return result


def notify_completion(db: Session, family_id: uuid.UUID, data: CompletionEmail) -> bool:
    """
    Email « exercice terminé » pour les familles en préférence « all ».
    Une erreur d'envoi est journalisée : elle ne doit pas faire échouer la soumission.
    """
    family = db.get(Family, family_id)
    if family is None or family.notification_preference != NOTIFY_ALL:
        return False

    to_email = get_notification_email(db, family)
    if to_email is None:
        return False

    try:
        return email_service.send_email(
            to_email,
            f"🎉 {data.student_name} 完成了練習！",
            email_service.format_completion_email(data),
        )
    except Exception as exc:
        logger.error("Échec de l'email de fin d'exercice pour la famille %s : %s", family_id, exc)
        return False


def yesterday_range(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Journée d'hier (00:00 → 23:59:59.999999) dans DEFAULT_TZ."""
    zone = ZoneInfo(settings.DEFAULT_TZ)
    now = datetime.now(zone) if now is None else now.astimezone(zone)
    day = now.date() - timedelta(days=1)
    return datetime.combine(day, time.min, tzinfo=zone), datetime.combine(day, time.max, tzinfo=zone)


def send_daily_digest(db: Session, now: Optional[datetime] = None) -> DailyDigestResult:
    """Envoie à chaque famille « daily_digest » le résumé des exercices terminés la veille."""
    start, end = yesterday_range(now)

    rows = db.execute(
        select(Family, Student.name, Submission.stars, Submission.created_at, TaskItem.sentence_text)
        .select_from(Submission)
        .join(Student, Student.id == Submission.student_id)
        .join(TaskItem, TaskItem.id == Submission.task_item_id)
        .join(Family, Family.id == Student.family_id)
        .where(Submission.created_at >= start, Submission.created_at <= end)
        .order_by(Submission.created_at)
    ).all()

    grouped: "OrderedDict[uuid.UUID, tuple[Family, list[DigestCompletion]]]" = OrderedDict()
    for family, student_name, stars, created_at, sentence_text in rows:
        grouped.setdefault(family.id, (family, []))[1].append(
            DigestCompletion(
                student_name=student_name,
                stars=stars,
                timestamp=created_at,
                sentence_text=sentence_text,
            )
        )

    result = DailyDigestResult(date=start.date(), total_families=len(grouped), emails_sent=0, errors=0)

    for family, completions in grouped.values():
        if family.notification_preference != NOTIFY_DAILY_DIGEST:
            continue
        to_email = get_notification_email(db, family)
        if to_email is None:
            continue
        try:
            sent = email_service.send_email(
                to_email,
                f"📊 每日練習總結 - {len(completions)} 項練習已完成",
                email_service.format_daily_digest_email(completions, start.date()),
            )
            if sent:
                result.emails_sent += 1
        except Exception as exc:
            logger.error("Échec du résumé quotidien pour la famille %s : %s", family.id, exc)
            result.errors += 1

    logger.info(
        "Résumé quotidien du %s : %d famille(s), %d email(s) envoyé(s), %d erreur(s)",
        result.date, result.total_families, result.emails_sent, result.errors,
    )
    return result

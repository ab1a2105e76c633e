"""
Service métier de l'espace famille : tout accès commence par la résolution du jeton.

Flux : jeton présenté → lien actif → famille → données de la famille uniquement.
Un jeton inconnu ou révoqué se traduit par None (→ 404 « lien invalide » côté router).
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session

from app.models.family import Family, NotificationPreference, Student
from app.models.school_class import ClassCourse, SchoolClass
from app.models.submission import Submission
from app.models.weekly_task import TASK_PUBLISHED, TaskItem, WeeklyTask
from app.schemas.family import StudentResponse
from app.schemas.family_portal import (
    FamilyLinkView,
    FamilyPerformance,
    FamilySummary,
    LowScoreSubmission,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    ProgressHistory,
    SubmissionCreate,
    SubmissionResponse,
    WeeklyProgress,
    WeeklyTaskView,
)
from app.schemas.notification import CompletionEmail
from app.schemas.weekly_task import ITEMS_PER_TASK, TaskItemResponse, WeeklyTaskResponse
from app.services import family_link_service, notification_service
from app.services.scoring import LOW_SCORE_THRESHOLD, get_scoring_thresholds, score_to_stars
from app.services.week import get_current_week_range
from app.services.word_alignment import align_words, build_feedback, score_alignment

logger = logging.getLogger(__name__)

LOW_SCORE_ITEMS_LIMIT = 20
PROGRESS_WEEKS = 8


def _resolve_family(db: Session, token: str) -> Optional[Family]:
    link = family_link_service.resolve_family_by_token(db, token)
    if link is None:
        return None
    return db.get(Family, link.family_id)


def _students_of(db: Session, family_id: uuid.UUID) -> List[Student]:
    return list(db.execute(
        select(Student).where(Student.family_id == family_id).order_by(Student.created_at)
    ).scalars().all())


def get_family_view(db: Session, token: str) -> Optional[FamilyLinkView]:
    """Famille et élèves accessibles avec ce jeton, ou None si le lien est invalide."""
    family = _resolve_family(db, token)
    if family is None:
        return None

    return FamilyLinkView(
        family=FamilySummary.model_validate(family),
        students=[StudentResponse.model_validate(s) for s in _students_of(db, family.id)],
    )


def _class_timezone(db: Session, class_course_id: uuid.UUID) -> Optional[str]:
    return db.execute(
        select(SchoolClass.timezone)
        .join(ClassCourse, ClassCourse.class_id == SchoolClass.id)
        .where(ClassCourse.id == class_course_id)
    ).scalar()


def get_weekly_task_view(db: Session, token: str, now: Optional[datetime] = None) -> Optional[WeeklyTaskView]:
    """
    Devoir publié de la semaine courante (fuseau de la classe) pour la classe-cours de la famille,
    avec ses phrases, les élèves et leurs soumissions. None si le lien est invalide.
    """
    family = _resolve_family(db, token)
    if family is None:
        return None

    week_start, week_end = get_current_week_range(now, _class_timezone(db, family.class_course_id))
    task = db.execute(
        select(WeeklyTask)
        .where(
            WeeklyTask.class_course_id == family.class_course_id,
            WeeklyTask.week_start >= week_start,
            WeeklyTask.week_end <= week_end,
            WeeklyTask.status == TASK_PUBLISHED,
        )
        .order_by(WeeklyTask.week_start.desc())
        .limit(1)
    ).scalar()

    if task is None:
        return WeeklyTaskView()

    items = db.execute(
        select(TaskItem).where(TaskItem.weekly_task_id == task.id).order_by(TaskItem.order_index)
    ).scalars().all()
    students = _students_of(db, family.id)

    submissions = []
    if students and items:
        submissions = db.execute(
            select(Submission)
            .where(
                Submission.student_id.in_([s.id for s in students]),
                Submission.task_item_id.in_([i.id for i in items]),
            )
            .order_by(Submission.created_at.desc())
        ).scalars().all()

    return WeeklyTaskView(
        task=WeeklyTaskResponse.model_validate(task),
        items=[TaskItemResponse.model_validate(i) for i in items],
        students=[StudentResponse.model_validate(s) for s in students],
        submissions=[SubmissionResponse.model_validate(s) for s in submissions],
    )


def list_submissions(db: Session, token: str) -> Optional[List[SubmissionResponse]]:
    """Toutes les soumissions des élèves de la famille, de la plus récente à la plus ancienne."""
    family = _resolve_family(db, token)
    if family is None:
        return None

    submissions = db.execute(
        select(Submission)
        .join(Student, Student.id == Submission.student_id)
        .where(Student.family_id == family.id)
        .order_by(Submission.created_at.desc())
    ).scalars().all()
    return [SubmissionResponse.model_validate(s) for s in submissions]


def create_submission(db: Session, data: SubmissionCreate) -> SubmissionResponse:
    """
    Enregistre (ou remplace) la tentative d'un élève sur une phrase.

    Le score est le pourcentage de mots de la phrase correctement prononcés d'après
    l'alignement avec le transcript ; les étoiles suivent les seuils configurés.
    Lève ValueError si le lien, la phrase ou l'élève est introuvable.
    """
    family = _resolve_family(db, data.token)
    if family is None:
        raise ValueError("Lien invalide.")

    task_item = db.get(TaskItem, data.task_item_id)
    if task_item is None:
        raise ValueError("Phrase introuvable.")

    student = db.execute(
        select(Student).where(Student.id == data.student_id, Student.family_id == family.id)
    ).scalar()
    if student is None:
        raise ValueError("Élève introuvable.")

    words = align_words(task_item.sentence_text, data.transcript)
    score = score_alignment(words)
    stars = score_to_stars(score, get_scoring_thresholds(db))
    feedback = build_feedback(words)

    values = {
        "audio_url": str(data.audio_url),
        "transcript": data.transcript,
        "score": score,
        "stars": stars,
        "feedback": feedback,
    }
    # INSERT ... ON CONFLICT : deux tentatives simultanées aboutissent à une seule ligne
    stmt = (
        pg_insert(Submission)
        .values(student_id=student.id, task_item_id=task_item.id, **values)
        .on_conflict_do_update(
            index_elements=["student_id", "task_item_id"],
            set_={**values, "created_at": func.now()},
        )
        .returning(Submission)
    )
    submission = db.execute(stmt).scalar_one()
    db.commit()

    logger.info("Soumission élève %s / phrase %s : score %d, %d étoile(s)", student.id, task_item.id, score, stars)

    notification_service.notify_completion(
        db,
        family.id,
        CompletionEmail(
            student_name=student.name,
            stars=stars,
            timestamp=submission.created_at,
            sentence_text=task_item.sentence_text,
        ),
    )

    response = SubmissionResponse.model_validate(submission)
    response.words = words
    return response


def get_notification_preferences(db: Session, token: str) -> Optional[NotificationPreferencesResponse]:
    family = _resolve_family(db, token)
    if family is None:
        return None

    enabled = db.execute(
        select(NotificationPreference.email_enabled)
        .where(NotificationPreference.family_id == family.id)
    ).scalar()
    # Pas de ligne = emails activés par défaut
    return NotificationPreferencesResponse(email_enabled=True if enabled is None else enabled)


def update_notification_preferences(
    db: Session, data: NotificationPreferencesUpdate
) -> Optional[NotificationPreferencesResponse]:
    family = _resolve_family(db, data.token)
    if family is None:
        return None

    preference = db.execute(
        select(NotificationPreference).where(NotificationPreference.family_id == family.id)
    ).scalar()
    if preference is None:
        db.add(NotificationPreference(family_id=family.id, email_enabled=data.email_enabled))
    else:
        preference.email_enabled = data.email_enabled
    db.commit()

    logger.info("Famille %s : emails %s", family.id, "activés" if data.email_enabled else "désactivés")
    return NotificationPreferencesResponse(email_enabled=data.email_enabled)


def get_performance(db: Session, token: str) -> Optional[FamilyPerformance]:
    """Moyenne, taux de complétion et phrases à retravailler de tous les élèves de la famille."""
    family = _resolve_family(db, token)
    if family is None:
        return None

    students = _students_of(db, family.id)
    if not students:
        return FamilyPerformance()

    submissions = db.execute(
        select(Submission)
        .where(Submission.student_id.in_([s.id for s in students]))
        .order_by(Submission.created_at.desc())
    ).scalars().all()

    scores = [s.score for s in submissions]
    low_scores = [s for s in submissions if s.score < LOW_SCORE_THRESHOLD][:LOW_SCORE_ITEMS_LIMIT]
    return FamilyPerformance(
        average_score=round(sum(scores) / len(scores), 1) if scores else 0,
        completion_rate=min(1.0, len(submissions) / (len(students) * ITEMS_PER_TASK)),
        low_score_items=[
            LowScoreSubmission(
                student_id=s.student_id,
                task_item_id=s.task_item_id,
                score=s.score,
                feedback=s.feedback,
            )
            for s in low_scores
        ],
        students=[StudentResponse.model_validate(s) for s in students],
        submissions=[SubmissionResponse.model_validate(s) for s in submissions],
    )


def get_progress_history(db: Session, token: str, now: Optional[datetime] = None) -> Optional[ProgressHistory]:
    """Moyennes hebdomadaires des PROGRESS_WEEKS dernières semaines, par ordre chronologique."""
    family = _resolve_family(db, token)
    if family is None:
        return None

    students = _students_of(db, family.id)
    if not students:
        return ProgressHistory()

    since = (now or datetime.now(timezone.utc)) - timedelta(weeks=PROGRESS_WEEKS)
    rows = db.execute(
        select(Submission.score, Submission.stars, WeeklyTask.week_start, WeeklyTask.week_end)
        .join(TaskItem, TaskItem.id == Submission.task_item_id)
        .join(WeeklyTask, WeeklyTask.id == TaskItem.weekly_task_id)
        .where(
            Submission.student_id.in_([s.id for s in students]),
            WeeklyTask.week_start >= since,
        )
    ).all()

    weeks = {}
    for score, stars, week_start, week_end in rows:
        week = weeks.setdefault(week_start, {"week_end": week_end, "scores": [], "stars": []})
        week["scores"].append(score)
        week["stars"].append(stars)

    expected = len(students) * ITEMS_PER_TASK
    return ProgressHistory(
        weeks=[
            WeeklyProgress(
                week_start=week_start,
                week_end=week["week_end"],
                avg_score=round(sum(week["scores"]) / len(week["scores"]), 2),
                avg_stars=round(sum(week["stars"]) / len(week["stars"]), 2),
                completion_rate=round(min(1.0, len(week["scores"]) / expected), 2),
                submission_count=len(week["scores"]),
            )
            for week_start, week in sorted(weeks.items())
        ],
        student_names={s.id: s.name for s in students},
    )

"""
Service métier des statistiques enseignant : tableau de bord de la semaine
et bilan d'une classe-cours (progression par élève, phrases à retravailler).
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.family import Family, Student
from app.models.school_class import ClassCourse, Course, SchoolClass
from app.models.submission import Submission
from app.models.weekly_task import TaskItem
from app.schemas.dashboard import (
    ClassSummary,
    DashboardStats,
    LowScoreItem,
    RecentCompletion,
    StarDistribution,
    StudentProgress,
    StudentRef,
)
from app.schemas.weekly_task import ITEMS_PER_TASK
from app.services import teacher_service
from app.services.scoring import LOW_SCORE_THRESHOLD
from app.services.week import get_current_week_range

logger = logging.getLogger(__name__)

RECENT_COMPLETIONS_LIMIT = 10
LOW_SCORE_ITEMS_LIMIT = 20


def _students_in(db: Session, class_course_ids: List[uuid.UUID]) -> List[Student]:
    return list(db.execute(
        select(Student)
        .join(Family, Family.id == Student.family_id)
        .where(Family.class_course_id.in_(class_course_ids))
        .order_by(Student.name)
    ).scalars().all())


def _average(values: List[int]) -> float:
    return sum(values) / len(values) if values else 0


def get_dashboard_stats(db: Session, teacher_id: uuid.UUID, now: Optional[datetime] = None) -> DashboardStats:
    """Soumissions de la semaine courante (DEFAULT_TZ) pour les élèves des classes-cours de l'enseignant."""
    class_course_ids = teacher_service.get_assigned_class_course_ids(db, teacher_id)
    if not class_course_ids:
        return DashboardStats()

    students = _students_in(db, class_course_ids)
    if not students:
        return DashboardStats()
    student_ids = [s.id for s in students]

    week_start, week_end = get_current_week_range(now)
    weekly = db.execute(
        select(Submission.student_id, Submission.score, Submission.stars)
        .where(
            Submission.student_id.in_(student_ids),
            Submission.created_at >= week_start,
            Submission.created_at <= week_end,
        )
    ).all()

    submitted = {student_id for student_id, _, _ in weekly}
    stars = [s for _, _, s in weekly]

    recent = db.execute(
        select(Submission, Student.name)
        .join(Student, Student.id == Submission.student_id)
        .where(Submission.student_id.in_(student_ids))
        .order_by(Submission.created_at.desc())
        .limit(RECENT_COMPLETIONS_LIMIT)
    ).all()

    return DashboardStats(
        total_submissions_this_week=len(weekly),
        average_score=round(_average([score for _, score, _ in weekly]), 1),
        star_distribution=StarDistribution(
            one_star=stars.count(1),
            two_star=stars.count(2),
            three_star=stars.count(3),
        ),
        students_not_submitted=[StudentRef(id=s.id, name=s.name) for s in students if s.id not in submitted],
        recent_completions=[
            RecentCompletion(
                student_name=name,
                stars=submission.stars,
                score=submission.score,
                completed_at=submission.created_at,
            )
            for submission, name in recent
        ],
    )


def get_class_summary(db: Session, teacher_id: uuid.UUID, class_course_id: uuid.UUID) -> ClassSummary:
    """
    Bilan d'une classe-cours affectée à l'enseignant, toutes semaines confondues.
    Lève PermissionError si la classe-cours ne lui est pas affectée.
    """
    if class_course_id not in teacher_service.get_assigned_class_course_ids(db, teacher_id):
        raise PermissionError("Classe-cours non autorisée.")

    names = db.execute(
        select(SchoolClass.name, Course.name)
        .select_from(ClassCourse)
        .join(SchoolClass, SchoolClass.id == ClassCourse.class_id)
        .join(Course, Course.id == ClassCourse.course_id)
        .where(ClassCourse.id == class_course_id)
    ).first()
    class_name, course_name = names if names else ("", "")

    students = _students_in(db, [class_course_id])
    if not students:
        return ClassSummary(class_name=class_name, course_name=course_name)
    student_ids = [s.id for s in students]

    scores_by_student = {s.id: [] for s in students}
    for student_id, score in db.execute(
        select(Submission.student_id, Submission.score).where(Submission.student_id.in_(student_ids))
    ).all():
        scores_by_student[student_id].append(score)

    all_scores = [score for scores in scores_by_student.values() for score in scores]
    completed_students = sum(1 for scores in scores_by_student.values() if scores)
    names_by_id = {s.id: s.name for s in students}

    low_rows = db.execute(
        select(Submission, TaskItem.sentence_text)
        .join(TaskItem, TaskItem.id == Submission.task_item_id)
        .where(Submission.student_id.in_(student_ids), Submission.score < LOW_SCORE_THRESHOLD)
        .order_by(Submission.score)
        .limit(LOW_SCORE_ITEMS_LIMIT)
    ).all()

    return ClassSummary(
        class_name=class_name,
        course_name=course_name,
        total_students=len(students),
        completion_rate=completed_students / len(students) * 100,
        average_score=_average(all_scores),
        students=[
            StudentProgress(
                student_id=s.id,
                student_name=s.name,
                completed_tasks=len(scores_by_student[s.id]),
                total_tasks=ITEMS_PER_TASK,
                average_score=_average(scores_by_student[s.id]),
                low_score_sentences=sum(1 for score in scores_by_student[s.id] if score < LOW_SCORE_THRESHOLD),
            )
            for s in students
        ],
        low_score_items=[
            LowScoreItem(
                task_item_id=submission.task_item_id,
                student_id=submission.student_id,
                student_name=names_by_id[submission.student_id],
                sentence_text=sentence_text,
                score=submission.score,
                feedback=submission.feedback,
                audio_url=submission.audio_url,
            )
            for submission, sentence_text in low_rows
        ],
    )

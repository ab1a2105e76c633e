"""
Service métier pour les devoirs hebdomadaires (espaces admin et enseignant).

Un devoir est créé par classe-cours sélectionnée, avec les mêmes 10 phrases.
La publication (à la création ou plus tard) déclenche l'email « nouveau devoir » aux familles.
"""

import uuid
import logging
from collections import defaultdict
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.curriculum_tag import CurriculumTag, TaskItemTag
from app.models.school_class import ClassCourse, Course, SchoolClass
from app.models.teacher import Teacher
from app.models.weekly_task import TASK_DRAFT, TASK_PUBLISHED, TaskItem, TaskNotification, WeeklyTask
from app.schemas.auth import SessionPayload
from app.schemas.weekly_task import (
    BulkPublishRequest,
    BulkPublishResult,
    TaskItemResponse,
    TaskItemsCopied,
    TaskItemsCopy,
    TaskNotificationResponse,
    WeeklyTaskCreate,
    WeeklyTaskDetail,
    WeeklyTaskDuplicate,
    WeeklyTaskResponse,
)
from app.services import notification_service, teacher_service

logger = logging.getLogger(__name__)

DUPLICATE_WEEK = "Un devoir existe déjà pour cette classe-cours et cette semaine."


def resolve_task_creator(db: Session, session: SessionPayload) -> uuid.UUID:
    """
    Enseignant enregistré comme créateur du devoir.
    Un admin connecté via ADMIN_USERNAME n'a pas de fiche : on prend le premier enseignant admin.
    """
    if session.teacher_id is not None:
        return session.teacher_id

    creator_id = db.execute(
        select(Teacher.id)
        .where(Teacher.is_admin.is_(True), Teacher.is_active.is_(True))
        .order_by(Teacher.created_at)
        .limit(1)
    ).scalar()
    if creator_id is None:
        raise ValueError("Aucun enseignant administrateur pour enregistrer le devoir.")
    return creator_id


def _base_query():
    return (
        select(WeeklyTask, SchoolClass.name, Course.name)
        .join(ClassCourse, ClassCourse.id == WeeklyTask.class_course_id)
        .join(SchoolClass, SchoolClass.id == ClassCourse.class_id)
        .join(Course, Course.id == ClassCourse.course_id)
    )


def _to_response(task: WeeklyTask, class_name: Optional[str], course_name: Optional[str]) -> WeeklyTaskResponse:
    response = WeeklyTaskResponse.model_validate(task)
    response.class_name = class_name
    response.course_name = course_name
    return response


def get_weekly_tasks(db: Session) -> List[WeeklyTaskResponse]:
    """Tous les devoirs, du plus récent au plus ancien."""
    rows = db.execute(_base_query().order_by(WeeklyTask.week_start.desc(), SchoolClass.name)).all()
    return [_to_response(task, class_name, course_name) for task, class_name, course_name in rows]


def _items_of(db: Session, weekly_task_id: uuid.UUID) -> List[TaskItem]:
    return list(db.execute(
        select(TaskItem).where(TaskItem.weekly_task_id == weekly_task_id).order_by(TaskItem.order_index)
    ).scalars().all())


def get_weekly_task(db: Session, weekly_task_id: uuid.UUID) -> Optional[WeeklyTaskDetail]:
    row = db.execute(_base_query().where(WeeklyTask.id == weekly_task_id)).first()
    if row is None:
        return None
    task, class_name, course_name = row

    return WeeklyTaskDetail(
        task=_to_response(task, class_name, course_name),
        items=[TaskItemResponse.model_validate(i) for i in _items_of(db, task.id)],
    )


def create_weekly_tasks(db: Session, data: WeeklyTaskCreate, created_by: uuid.UUID) -> List[WeeklyTaskResponse]:
    """
    Crée un devoir par classe-cours, avec ses 10 phrases.

    Lève une ValueError :
      - « introuvable » si une classe-cours ou une étiquette de phrase n'existe pas
      - « existe déjà » si un devoir existe pour cette classe-cours et ce début de semaine
    Les devoirs créés au statut « published » sont notifiés aux familles.
    """
    class_course_ids = list(dict.fromkeys(data.class_course_ids))
    known = set(db.execute(
        select(ClassCourse.id).where(ClassCourse.id.in_(class_course_ids))
    ).scalars().all())
    missing = [str(cc_id) for cc_id in class_course_ids if cc_id not in known]
    if missing:
        raise ValueError(f"Classe-cours introuvable(s) : {', '.join(missing)}")

    tag_ids = list(dict.fromkeys(tag_id for item in data.items for tag_id in item.tag_ids))
    if tag_ids:
        known_tags = set(db.execute(
            select(CurriculumTag.id).where(CurriculumTag.id.in_(tag_ids))
        ).scalars().all())
        unknown = [str(tag_id) for tag_id in tag_ids if tag_id not in known_tags]
        if unknown:
            raise ValueError(f"Étiquette(s) introuvable(s) : {', '.join(unknown)}")

    tasks = []
    try:
        for class_course_id in class_course_ids:
            task = WeeklyTask(
                class_course_id=class_course_id,
                week_start=data.week_start,
                week_end=data.week_end,
                status=data.status,
                created_by_admin=created_by,
            )
            db.add(task)
            db.flush()  # task.id nécessaire pour les phrases

            for item in data.items:
                task_item = TaskItem(
                    weekly_task_id=task.id,
                    order_index=item.order_index,
                    sentence_text=item.sentence_text,
                    reference_audio_url=str(item.reference_audio_url) if item.reference_audio_url else None,
                )
                db.add(task_item)
                if item.tag_ids:
                    db.flush()
                    for tag_id in dict.fromkeys(item.tag_ids):
                        db.add(TaskItemTag(task_item_id=task_item.id, curriculum_tag_id=tag_id))
            tasks.append(task)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(DUPLICATE_WEEK)

    logger.info("%d devoir(s) créé(s) pour la semaine du %s", len(tasks), data.week_start)

    if data.status == TASK_PUBLISHED:
        for task in tasks:
            notification_service.send_task_published_notifications(db, task.id)

    return [
        _to_response(task, class_name, course_name)
        for task, class_name, course_name in db.execute(
            _base_query().where(WeeklyTask.id.in_([t.id for t in tasks])).order_by(SchoolClass.name)
        ).all()
    ]


def publish_weekly_task(db: Session, weekly_task_id: uuid.UUID) -> Optional[WeeklyTaskDetail]:
    """
    Passe un devoir au statut « published » et notifie les familles.
    Un devoir déjà publié n'est pas renotifié.
    """
    task = db.get(WeeklyTask, weekly_task_id)
    if task is None:
        return None

    if task.status != TASK_PUBLISHED:
        task.status = TASK_PUBLISHED
        db.commit()
        logger.info("Devoir %s publié", weekly_task_id)
        notification_service.send_task_published_notifications(db, weekly_task_id)

    return get_weekly_task(db, weekly_task_id)


def delete_weekly_task(db: Session, weekly_task_id: uuid.UUID) -> bool:
    """Supprime un devoir ; ses phrases, soumissions et notifications suivent en cascade."""
    task = db.get(WeeklyTask, weekly_task_id)
    if task is None:
        return False
    db.delete(task)
    db.commit()
    logger.info("Devoir %s supprimé", weekly_task_id)
    return True


def get_task_notifications(db: Session, weekly_task_id: uuid.UUID) -> Optional[List[TaskNotificationResponse]]:
    if db.get(WeeklyTask, weekly_task_id) is None:
        return None
    notifications = db.execute(
        select(TaskNotification)
        .where(TaskNotification.weekly_task_id == weekly_task_id)
        .order_by(TaskNotification.created_at.desc())
    ).scalars().all()
    return [TaskNotificationResponse.model_validate(n) for n in notifications]


# --- Espace enseignant ---

def _assigned_or_forbidden(db: Session, teacher_id: uuid.UUID) -> List[uuid.UUID]:
    class_course_ids = teacher_service.get_assigned_class_course_ids(db, teacher_id)
    if not class_course_ids:
        raise PermissionError("Aucune classe-cours n'est affectée à cet enseignant.")
    return class_course_ids


def _accessible_task(
    db: Session, class_course_ids: List[uuid.UUID], weekly_task_id: uuid.UUID, role: str
) -> WeeklyTask:
    task = db.get(WeeklyTask, weekly_task_id)
    if task is None:
        raise ValueError(f"Devoir {role} introuvable.")
    if task.class_course_id not in class_course_ids:
        raise PermissionError(f"Devoir {role} non autorisé.")
    return task


def _copy_items(db: Session, source_items: List[TaskItem], weekly_task_id: uuid.UUID) -> None:
    for item in source_items:
        db.add(TaskItem(
            weekly_task_id=weekly_task_id,
            order_index=item.order_index,
            sentence_text=item.sentence_text,
            reference_audio_url=item.reference_audio_url,
            reference_audio_status=item.reference_audio_status,
        ))


def get_teacher_weekly_tasks(db: Session, teacher_id: uuid.UUID) -> List[WeeklyTaskDetail]:
    """Devoirs des classes-cours de l'enseignant avec leurs phrases, du plus récent au plus ancien."""
    class_course_ids = teacher_service.get_assigned_class_course_ids(db, teacher_id)
    if not class_course_ids:
        return []

    rows = db.execute(
        _base_query()
        .where(WeeklyTask.class_course_id.in_(class_course_ids))
        .order_by(WeeklyTask.week_start.desc(), SchoolClass.name)
    ).all()
    if not rows:
        return []

    items = db.execute(
        select(TaskItem)
        .where(TaskItem.weekly_task_id.in_([task.id for task, _, _ in rows]))
        .order_by(TaskItem.order_index)
    ).scalars().all()
    items_by_task = defaultdict(list)
    for item in items:
        items_by_task[item.weekly_task_id].append(TaskItemResponse.model_validate(item))

    return [
        WeeklyTaskDetail(task=_to_response(task, class_name, course_name), items=items_by_task[task.id])
        for task, class_name, course_name in rows
    ]


def bulk_publish_weekly_tasks(db: Session, teacher_id: uuid.UUID, data: BulkPublishRequest) -> BulkPublishResult:
    """
    Publie d'un coup plusieurs devoirs des classes-cours de l'enseignant (tout ou rien).

    Lève une ValueError si aucun devoir demandé n'est accessible,
    une PermissionError si une partie seulement l'est.
    Seuls les devoirs qui n'étaient pas encore publiés déclenchent l'email aux familles.
    """
    class_course_ids = _assigned_or_forbidden(db, teacher_id)
    task_ids = list(dict.fromkeys(data.task_ids))

    tasks = db.execute(
        select(WeeklyTask).where(
            WeeklyTask.id.in_(task_ids),
            WeeklyTask.class_course_id.in_(class_course_ids),
        )
    ).scalars().all()
    if not tasks:
        raise ValueError("Devoirs introuvables ou non autorisés.")
    if len(tasks) != len(task_ids):
        found = {task.id for task in tasks}
        missing = [str(task_id) for task_id in task_ids if task_id not in found]
        raise PermissionError(f"Devoirs introuvables ou non autorisés : {', '.join(missing)}")

    newly_published = [task.id for task in tasks if task.status != TASK_PUBLISHED]
    for task in tasks:
        task.status = TASK_PUBLISHED
    db.commit()
    logger.info("Enseignant %s : %d devoir(s) publié(s)", teacher_id, len(newly_published))

    for weekly_task_id in newly_published:
        notification_service.send_task_published_notifications(db, weekly_task_id)

    rows = db.execute(_base_query().where(WeeklyTask.id.in_(task_ids)).order_by(WeeklyTask.week_start)).all()
    return BulkPublishResult(
        updated_count=len(tasks),
        tasks=[_to_response(task, class_name, course_name) for task, class_name, course_name in rows],
    )


def duplicate_weekly_task(
    db: Session, teacher_id: uuid.UUID, data: WeeklyTaskDuplicate
) -> Optional[WeeklyTaskDetail]:
    """
    Crée un brouillon pour la classe-cours et la semaine cibles avec les phrases du devoir source.

    PermissionError si la source ou la cible sort des classes-cours de l'enseignant ;
    ValueError si la source est introuvable, vide, ou si la cible a déjà un devoir cette semaine.
    """
    class_course_ids = _assigned_or_forbidden(db, teacher_id)
    source = _accessible_task(db, class_course_ids, data.source_task_id, "source")
    if data.target_class_course_id not in class_course_ids:
        raise PermissionError("Classe-cours cible non autorisée.")

    source_items = _items_of(db, source.id)
    if not source_items:
        raise ValueError("Le devoir source ne contient aucune phrase.")

    task = WeeklyTask(
        class_course_id=data.target_class_course_id,
        week_start=data.week_start,
        week_end=data.week_end,
        status=TASK_DRAFT,
        created_by_admin=teacher_id,
    )
    try:
        db.add(task)
        db.flush()
        _copy_items(db, source_items, task.id)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(DUPLICATE_WEEK)

    logger.info("Devoir %s dupliqué en %s par l'enseignant %s", source.id, task.id, teacher_id)
    return get_weekly_task(db, task.id)


def copy_task_items(db: Session, teacher_id: uuid.UUID, data: TaskItemsCopy) -> TaskItemsCopied:
    """
    Remplace les phrases du devoir cible par celles du devoir source.
    Les soumissions liées aux anciennes phrases de la cible sont supprimées en cascade.
    """
    class_course_ids = _assigned_or_forbidden(db, teacher_id)
    source = _accessible_task(db, class_course_ids, data.source_task_id, "source")
    target = _accessible_task(db, class_course_ids, data.target_task_id, "cible")

    source_items = _items_of(db, source.id)
    if not source_items:
        raise ValueError("Le devoir source ne contient aucune phrase.")

    db.execute(delete(TaskItem).where(TaskItem.weekly_task_id == target.id))
    _copy_items(db, source_items, target.id)
    db.commit()

    logger.info("%d phrase(s) copiée(s) de %s vers %s", len(source_items), source.id, target.id)
    return TaskItemsCopied(target_task_id=target.id, item_count=len(source_items))

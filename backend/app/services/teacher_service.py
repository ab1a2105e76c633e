"""
Service métier pour la gestion des enseignants (espace admin) et leur connexion.
"""

import uuid
import logging
from collections import defaultdict
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth import hash_password, verify_password
from app.models.school_class import ClassCourse, Course, SchoolClass
from app.models.teacher import Teacher, TeacherAssignment
from app.schemas.teacher import TeacherCreate, TeacherResponse, TeacherUpdate

logger = logging.getLogger(__name__)


def authenticate_teacher(db: Session, email: str, password: str) -> Optional[Teacher]:
    """Retourne l'enseignant si l'email existe, le compte est actif et le mot de passe correct."""
    teacher = db.execute(select(Teacher).where(Teacher.email == email)).scalar()
    if teacher is None or not teacher.is_active:
        return None
    if not verify_password(teacher.password_hash, password):
        return None
    return teacher


def get_assigned_class_course_ids(db: Session, teacher_id: uuid.UUID) -> List[uuid.UUID]:
    """Identifiants des classes-cours affectées à l'enseignant."""
    return list(db.execute(
        select(TeacherAssignment.class_course_id)
        .where(TeacherAssignment.teacher_id == teacher_id)
    ).scalars().all())


def _assignment_names(db: Session, teacher_ids: Optional[List[uuid.UUID]] = None) -> dict:
    """{teacher_id: ["Classe-Cours", ...]}"""
    query = (
        select(TeacherAssignment.teacher_id, SchoolClass.name, Course.name)
        .join(ClassCourse, ClassCourse.id == TeacherAssignment.class_course_id)
        .join(SchoolClass, SchoolClass.id == ClassCourse.class_id)
        .join(Course, Course.id == ClassCourse.course_id)
    )
    if teacher_ids is not None:
        query = query.where(TeacherAssignment.teacher_id.in_(teacher_ids))

    names = defaultdict(list)
    for teacher_id, class_name, course_name in db.execute(query).all():
        names[teacher_id].append(f"{class_name}-{course_name}")
    return names


def _to_response(teacher: Teacher, names: dict) -> TeacherResponse:
    return TeacherResponse(
        id=teacher.id,
        name=teacher.name,
        email=teacher.email,
        is_active=teacher.is_active,
        is_admin=teacher.is_admin,
        created_at=teacher.created_at,
        class_course_names=names.get(teacher.id, []),
    )


def get_teachers(db: Session) -> List[TeacherResponse]:
    teachers = db.execute(select(Teacher).order_by(Teacher.created_at)).scalars().all()
    names = _assignment_names(db)
    return [_to_response(t, names) for t in teachers]


def get_teacher(db: Session, teacher_id: uuid.UUID) -> Optional[TeacherResponse]:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        return None
    return _to_response(teacher, _assignment_names(db, [teacher_id]))


def _replace_assignments(db: Session, teacher_id: uuid.UUID, class_course_ids: List[uuid.UUID]) -> None:
    db.execute(delete(TeacherAssignment).where(TeacherAssignment.teacher_id == teacher_id))
    for class_course_id in dict.fromkeys(class_course_ids):  # dédoublonne en gardant l'ordre
        db.add(TeacherAssignment(teacher_id=teacher_id, class_course_id=class_course_id))


def create_teacher(db: Session, data: TeacherCreate) -> TeacherResponse:
    """
    Crée un enseignant (actif, non admin) et ses affectations.
    Lève une ValueError si l'email existe déjà ou si une classe-cours est inconnue.
    """
    teacher = Teacher(
        name=data.name,
        email=str(data.email),
        password_hash=hash_password(data.password),
        is_active=True,
        is_admin=False,
    )
    db.add(teacher)
    try:
        db.flush()
        _replace_assignments(db, teacher.id, data.class_course_ids)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"Impossible de créer l'enseignant '{data.email}' : email déjà utilisé ou classe-cours inconnue.")
    db.refresh(teacher)

    logger.info("Enseignant %s créé (%d affectation(s))", teacher.id, len(data.class_course_ids))
    return get_teacher(db, teacher.id)


def update_teacher(db: Session, teacher_id: uuid.UUID, data: TeacherUpdate) -> Optional[TeacherResponse]:
    """Met à jour les champs fournis ; class_course_ids remplace toutes les affectations."""
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        return None

    if data.name is not None:
        teacher.name = data.name
    if data.email is not None:
        teacher.email = str(data.email)
    if data.password is not None:
        teacher.password_hash = hash_password(data.password)
    if data.class_course_ids is not None:
        _replace_assignments(db, teacher_id, data.class_course_ids)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Email déjà utilisé ou classe-cours inconnue.")
    return get_teacher(db, teacher_id)


def set_teacher_active(db: Session, teacher_id: uuid.UUID, is_active: bool) -> Optional[TeacherResponse]:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        return None
    teacher.is_active = is_active
    db.commit()
    logger.info("Enseignant %s %s", teacher_id, "activé" if is_active else "désactivé")
    return get_teacher(db, teacher_id)


def reset_password(db: Session, teacher_id: uuid.UUID, password: str) -> bool:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        return False
    teacher.password_hash = hash_password(password)
    db.commit()
    logger.info("Mot de passe réinitialisé pour l'enseignant %s", teacher_id)
    return True


def delete_teacher(db: Session, teacher_id: uuid.UUID) -> bool:
    """
    Supprime un enseignant.
    Bloqué (ValueError) s'il a créé des familles ou des devoirs (FK RESTRICT).
    """
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        return False

    db.delete(teacher)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Impossible de supprimer cet enseignant : des familles ou des devoirs lui sont rattachés.")
    return True

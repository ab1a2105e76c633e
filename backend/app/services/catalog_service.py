"""
Service métier pour les classes, les cours, les classes-cours et les étiquettes de programme (espace admin).
"""

import uuid
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.curriculum_tag import CurriculumTag
from app.models.school_class import ClassCourse, Course, SchoolClass
from app.schemas.catalog import (
    ClassCourseCreate,
    ClassCourseResponse,
    ClassCreate,
    ClassResponse,
    ClassUpdate,
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    CurriculumTagCreate,
    CurriculumTagResponse,
    CurriculumTagUpdate,
)

logger = logging.getLogger(__name__)


# --- Classes ---

def get_classes(db: Session) -> List[ClassResponse]:
    classes = db.execute(select(SchoolClass).order_by(SchoolClass.name)).scalars().all()
    return [ClassResponse.model_validate(c) for c in classes]


def create_class(db: Session, data: ClassCreate) -> ClassResponse:
    school_class = SchoolClass(name=data.name, timezone=data.timezone)
    db.add(school_class)
    db.commit()
    db.refresh(school_class)
    return ClassResponse.model_validate(school_class)


def update_class(db: Session, class_id: uuid.UUID, data: ClassUpdate) -> Optional[ClassResponse]:
    """Met à jour les champs fournis d'une classe."""
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(school_class, field, value)

    db.commit()
    db.refresh(school_class)
    return ClassResponse.model_validate(school_class)


def delete_class(db: Session, class_id: uuid.UUID) -> bool:
    """
    Supprime une classe. Ses classes-cours, familles et devoirs sont supprimés en cascade.
    Retourne True si supprimée, False si introuvable.
    """
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        return False
    db.delete(school_class)
    db.commit()
    logger.info("Classe %s supprimée", class_id)
    return True


# --- Cours ---

def get_courses(db: Session) -> List[CourseResponse]:
    courses = db.execute(select(Course).order_by(Course.name)).scalars().all()
    return [CourseResponse.model_validate(c) for c in courses]


def create_course(db: Session, data: CourseCreate) -> CourseResponse:
    course = Course(name=data.name, level=data.level)
    db.add(course)
    db.commit()
    db.refresh(course)
    return CourseResponse.model_validate(course)


def update_course(db: Session, course_id: uuid.UUID, data: CourseUpdate) -> Optional[CourseResponse]:
    course = db.get(Course, course_id)
    if course is None:
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(course, field, value)

    db.commit()
    db.refresh(course)
    return CourseResponse.model_validate(course)


def delete_course(db: Session, course_id: uuid.UUID) -> bool:
    course = db.get(Course, course_id)
    if course is None:
        return False
    db.delete(course)
    db.commit()
    logger.info("Cours %s supprimé", course_id)
    return True


# --- Classes-cours ---

def get_class_courses(db: Session) -> List[ClassCourseResponse]:
    """Toutes les associations classe ↔ cours avec les noms, triées par classe puis cours."""
    rows = db.execute(
        select(ClassCourse, SchoolClass.name, Course.name, Course.level)
        .join(SchoolClass, SchoolClass.id == ClassCourse.class_id)
        .join(Course, Course.id == ClassCourse.course_id)
        .order_by(SchoolClass.name, Course.name)
    ).all()

    return [
        ClassCourseResponse(
            id=cc.id,
            class_id=cc.class_id,
            course_id=cc.course_id,
            class_name=class_name,
            course_name=course_name,
            course_level=level,
        )
        for cc, class_name, course_name, level in rows
    ]


def create_class_course(db: Session, data: ClassCourseCreate) -> ClassCourseResponse:
    """
    Associe un cours à une classe.
    Lève une ValueError si la classe ou le cours est inconnu, ou si l'association existe déjà.
    """
    school_class = db.get(SchoolClass, data.class_id)
    if school_class is None:
        raise ValueError("Classe introuvable.")
    course = db.get(Course, data.course_id)
    if course is None:
        raise ValueError("Cours introuvable.")

    class_course = ClassCourse(class_id=data.class_id, course_id=data.course_id)
    db.add(class_course)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"Le cours '{course.name}' est déjà associé à la classe '{school_class.name}'.")
    db.refresh(class_course)

    return ClassCourseResponse(
        id=class_course.id,
        class_id=class_course.class_id,
        course_id=class_course.course_id,
        class_name=school_class.name,
        course_name=course.name,
        course_level=course.level,
    )


def delete_class_course(db: Session, class_course_id: uuid.UUID) -> bool:
    class_course = db.get(ClassCourse, class_course_id)
    if class_course is None:
        return False
    db.delete(class_course)
    db.commit()
    return True


# --- Étiquettes de programme ---

def get_curriculum_tags(db: Session) -> List[CurriculumTagResponse]:
    tags = db.execute(select(CurriculumTag).order_by(CurriculumTag.name)).scalars().all()
    return [CurriculumTagResponse.model_validate(t) for t in tags]


def create_curriculum_tag(db: Session, data: CurriculumTagCreate) -> CurriculumTagResponse:
    """Lève une ValueError si une étiquette porte déjà ce nom."""
    tag = CurriculumTag(name=data.name, description=data.description)
    db.add(tag)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"L'étiquette '{data.name}' existe déjà.")
    db.refresh(tag)
    return CurriculumTagResponse.model_validate(tag)


def update_curriculum_tag(db: Session, tag_id: uuid.UUID, data: CurriculumTagUpdate) -> Optional[CurriculumTagResponse]:
    tag = db.get(CurriculumTag, tag_id)
    if tag is None:
        return None

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(tag, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"L'étiquette '{data.name}' existe déjà.")
    db.refresh(tag)
    return CurriculumTagResponse.model_validate(tag)


def delete_curriculum_tag(db: Session, tag_id: uuid.UUID) -> bool:
    tag = db.get(CurriculumTag, tag_id)
    if tag is None:
        return False
    db.delete(tag)
    db.commit()
    logger.info("Étiquette de programme %s supprimée", tag_id)
    return True

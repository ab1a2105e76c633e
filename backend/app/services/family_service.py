"""
Service métier pour la gestion des familles par les enseignants.

Un enseignant ne voit que les familles des classes-cours qui lui sont affectées,
et ne peut modifier que celles qu'il a créées.
"""

import io
import logging
import uuid
from typing import List, Optional

import qrcode
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.models.family import Family, Student
from app.models.school_class import ClassCourse, Course, SchoolClass
from app.models.teacher import TeacherAssignment
from app.schemas.catalog import ClassCourseResponse
from app.schemas.family import (
    FamilyCreate,
    FamilyLinkIssued,
    FamilyLinkRevoked,
    FamilyResponse,
    FamilyUpdate,
    NotificationSettingsUpdate,
    StudentResponse,
)
from app.services import family_link_service, teacher_service

logger = logging.getLogger(__name__)


def generate_qr_image(data: str) -> bytes:
    """Génère une image PNG du QR code encodant la donnée fournie (ici l'URL du lien famille)."""
    qr = qrcode.QRCode(version=None, box_size=10, border=4)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def get_teacher_class_courses(db: Session, teacher_id: uuid.UUID) -> List[ClassCourseResponse]:
    """Classes-cours affectées à l'enseignant, avec les noms de classe et de cours."""
    rows = db.execute(
        select(ClassCourse, SchoolClass.name, Course.name, Course.level)
        .join(TeacherAssignment, TeacherAssignment.class_course_id == ClassCourse.id)
        .join(SchoolClass, SchoolClass.id == ClassCourse.class_id)
        .join(Course, Course.id == ClassCourse.course_id)
        .where(TeacherAssignment.teacher_id == teacher_id)
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


def _students_of(db: Session, family_id: uuid.UUID) -> List[StudentResponse]:
    students = db.execute(
        select(Student).where(Student.family_id == family_id).order_by(Student.created_at)
    ).scalars().all()
    return [StudentResponse.model_validate(s) for s in students]


def _to_response(
    db: Session,
    family: Family,
    class_name: Optional[str] = None,
    course_name: Optional[str] = None,
) -> FamilyResponse:
    """Construit la réponse avec les élèves et le jeton actif déchiffré (s'il existe)."""
    token = family_link_service.get_active_family_token(db, family.id)
    return FamilyResponse(
        id=family.id,
        parent_name=family.parent_name,
        note=family.note or "",
        email=family.email,
        notification_preference=family.notification_preference,
        class_course_id=family.class_course_id,
        class_name=class_name,
        course_name=course_name,
        created_at=family.created_at,
        students=_students_of(db, family.id),
        token=token,
        link_url=family_link_service.build_link_url(token) if token else None,
    )


def list_families(db: Session, teacher_id: uuid.UUID) -> List[FamilyResponse]:
    """Familles des classes-cours de l'enseignant (toutes, quel que soit leur créateur)."""
    class_course_ids = teacher_service.get_assigned_class_course_ids(db, teacher_id)
    if not class_course_ids:
        return []

    rows = db.execute(
        select(Family, SchoolClass.name, Course.name)
        .outerjoin(ClassCourse, ClassCourse.id == Family.class_course_id)
        .outerjoin(SchoolClass, SchoolClass.id == ClassCourse.class_id)
        .outerjoin(Course, Course.id == ClassCourse.course_id)
        .where(Family.class_course_id.in_(class_course_ids))
        .order_by(Family.created_at)
    ).all()

    return [_to_response(db, family, class_name, course_name) for family, class_name, course_name in rows]


def get_owned_family(db: Session, teacher_id: uuid.UUID, family_id: uuid.UUID) -> Optional[Family]:
    """Famille créée par cet enseignant, ou None (inexistante ou appartenant à un autre)."""
    return db.execute(
        select(Family).where(
            Family.id == family_id,
            Family.created_by_teacher_id == teacher_id,
        )
    ).scalar()


def create_family(db: Session, teacher_id: uuid.UUID, data: FamilyCreate) -> FamilyLinkIssued:
    """
    Crée une famille, ses élèves, puis émet son premier lien.
    Lève PermissionError si l'enseignant n'est pas affecté à la classe-cours.
    """
    if data.class_course_id not in teacher_service.get_assigned_class_course_ids(db, teacher_id):
        raise PermissionError("Classe-cours non autorisée.")

    family = Family(
        parent_name=data.parent_name,
        note=data.note,
        email=str(data.email) if data.email else None,
        class_course_id=data.class_course_id,
        created_by_teacher_id=teacher_id,
    )
    db.add(family)
    db.flush()  # family.id nécessaire pour les élèves

    for student in data.students:
        db.add(Student(family_id=family.id, name=student.name))
    db.commit()

    logger.info("Famille %s créée par l'enseignant %s (%d élève(s))", family.id, teacher_id, len(data.students))

    token = family_link_service.issue_family_link(db, family.id)
    return FamilyLinkIssued(family_id=family.id, token=token, link_url=family_link_service.build_link_url(token))


def update_family(
    db: Session, teacher_id: uuid.UUID, family_id: uuid.UUID, data: FamilyUpdate
) -> Optional[FamilyResponse]:
    """
    Met à jour la famille et réconcilie la liste des élèves :
    ids connus renommés, élèves sans id (ou id inconnu) ajoutés, élèves absents supprimés.
    """
    family = get_owned_family(db, teacher_id, family_id)
    if family is None:
        return None

    family.parent_name = data.parent_name
    family.note = data.note

    existing = {
        s.id: s
        for s in db.execute(select(Student).where(Student.family_id == family_id)).scalars().all()
    }
    kept_ids = {s.id for s in data.students if s.id is not None and s.id in existing}

    removed_ids = [sid for sid in existing if sid not in kept_ids]
    if removed_ids:
        db.execute(delete(Student).where(Student.id.in_(removed_ids)))

    for student in data.students:
        if student.id is not None and student.id in existing:
            existing[student.id].name = student.name
        else:
            db.add(Student(family_id=family_id, name=student.name))

    db.commit()
    db.refresh(family)
    return _to_response(db, family)


def update_notification_settings(
    db: Session, teacher_id: uuid.UUID, family_id: uuid.UUID, data: NotificationSettingsUpdate
) -> Optional[FamilyResponse]:
    family = get_owned_family(db, teacher_id, family_id)
    if family is None:
        return None

    family.email = str(data.email) if data.email else None
    family.notification_preference = data.notification_preference
    db.commit()
    db.refresh(family)
    return _to_response(db, family)


def reset_family_link(db: Session, teacher_id: uuid.UUID, family_id: uuid.UUID) -> Optional[FamilyLinkIssued]:
    """Émet un nouveau lien ; l'ancien cesse immédiatement de fonctionner."""
    family = get_owned_family(db, teacher_id, family_id)
    if family is None:
        return None

    token = family_link_service.issue_family_link(db, family.id)
    return FamilyLinkIssued(family_id=family.id, token=token, link_url=family_link_service.build_link_url(token))


def revoke_family_link(db: Session, teacher_id: uuid.UUID, family_id: uuid.UUID) -> Optional[FamilyLinkRevoked]:
    family = get_owned_family(db, teacher_id, family_id)
    if family is None:
        return None

    count = family_link_service.revoke_family_links(db, family.id)
    return FamilyLinkRevoked(family_id=family.id, revoked_count=count)


def get_family_link_qr(db: Session, teacher_id: uuid.UUID, family_id: uuid.UUID) -> Optional[bytes]:
    """
    QR code PNG de l'URL du lien actif.
    Retourne None si la famille est introuvable ; lève ValueError si aucun lien actif.
    """
    family = get_owned_family(db, teacher_id, family_id)
    if family is None:
        return None

    token = family_link_service.get_active_family_token(db, family.id)
    if token is None:
        raise ValueError("Aucun lien actif pour cette famille.")
    return generate_qr_image(family_link_service.build_link_url(token))

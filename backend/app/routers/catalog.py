"""
Router pour les classes, les cours, leurs associations et les étiquettes de programme (espace admin).
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import require_admin
from app.database import get_db
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
from app.services import catalog_service

router = APIRouter(prefix="/api/v1/admin", tags=["Catalogue"], dependencies=[Depends(require_admin)])


# --- Classes ---

@router.get("/classes", response_model=List[ClassResponse], summary="Lister les classes")
def list_classes(db: Session = Depends(get_db)):
    return catalog_service.get_classes(db)


@router.post("/classes", response_model=ClassResponse, status_code=201, summary="Créer une classe")
def create_class(data: ClassCreate, db: Session = Depends(get_db)):
    return catalog_service.create_class(db, data)


@router.put("/classes/{class_id}", response_model=ClassResponse, summary="Modifier une classe")
def update_class(class_id: uuid.UUID, data: ClassUpdate, db: Session = Depends(get_db)):
    result = catalog_service.update_class(db, class_id, data)
    if result is None:
        raise HTTPException(status_code=404, detail="Classe introuvable.")
    return result


@router.delete("/classes/{class_id}", status_code=204, summary="Supprimer une classe")
def delete_class(class_id: uuid.UUID, db: Session = Depends(get_db)):
    if not catalog_service.delete_class(db, class_id):
        raise HTTPException(status_code=404, detail="Classe introuvable.")


# --- Cours ---

@router.get("/courses", response_model=List[CourseResponse], summary="Lister les cours")
def list_courses(db: Session = Depends(get_db)):
    return catalog_service.get_courses(db)


@router.post("/courses", response_model=CourseResponse, status_code=201, summary="Créer un cours")
def create_course(data: CourseCreate, db: Session = Depends(get_db)):
    return catalog_service.create_course(db, data)


@router.put("/courses/{course_id}", response_model=CourseResponse, summary="Modifier un cours")
def update_course(course_id: uuid.UUID, data: CourseUpdate, db: Session = Depends(get_db)):
    result = catalog_service.update_course(db, course_id, data)
    if result is None:
        raise HTTPException(status_code=404, detail="Cours introuvable.")
    return result


@router.delete("/courses/{course_id}", status_code=204, summary="Supprimer un cours")
def delete_course(course_id: uuid.UUID, db: Session = Depends(get_db)):
    if not catalog_service.delete_course(db, course_id):
        raise HTTPException(status_code=404, detail="Cours introuvable.")


# --- Classes-cours ---

@router.get("/class-courses", response_model=List[ClassCourseResponse], summary="Lister les classes-cours")
def list_class_courses(db: Session = Depends(get_db)):
    return catalog_service.get_class_courses(db)


@router.post(
    "/class-courses",
    response_model=ClassCourseResponse,
    status_code=201,
    summary="Associer un cours à une classe",
)
def create_class_course(data: ClassCourseCreate, db: Session = Depends(get_db)):
    """404 si la classe ou le cours n'existe pas, 409 si l'association existe déjà."""
    try:
        return catalog_service.create_class_course(db, data)
    except ValueError as e:
        msg = str(e)
        if "introuvable" in msg:
            raise HTTPException(status_code=404, detail=msg)
        raise HTTPException(status_code=409, detail=msg)


@router.delete("/class-courses/{class_course_id}", status_code=204, summary="Supprimer une classe-cours")
def delete_class_course(class_course_id: uuid.UUID, db: Session = Depends(get_db)):
    if not catalog_service.delete_class_course(db, class_course_id):
        raise HTTPException(status_code=404, detail="Classe-cours introuvable.")


# --- Étiquettes de programme ---

@router.get("/curriculum-tags", response_model=List[CurriculumTagResponse], summary="Lister les étiquettes")
def list_curriculum_tags(db: Session = Depends(get_db)):
    return catalog_service.get_curriculum_tags(db)


@router.post(
    "/curriculum-tags",
    response_model=CurriculumTagResponse,
    status_code=201,
    summary="Créer une étiquette de programme",
)
def create_curriculum_tag(data: CurriculumTagCreate, db: Session = Depends(get_db)):
    try:
        return catalog_service.create_curriculum_tag(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/curriculum-tags/{tag_id}", response_model=CurriculumTagResponse, summary="Modifier une étiquette")
def update_curriculum_tag(tag_id: uuid.UUID, data: CurriculumTagUpdate, db: Session = Depends(get_db)):
    try:
        result = catalog_service.update_curriculum_tag(db, tag_id, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Étiquette introuvable.")
    return result


@router.delete("/curriculum-tags/{tag_id}", status_code=204, summary="Supprimer une étiquette")
def delete_curriculum_tag(tag_id: uuid.UUID, db: Session = Depends(get_db)):
    if not catalog_service.delete_curriculum_tag(db, tag_id):
        raise HTTPException(status_code=404, detail="Étiquette introuvable.")

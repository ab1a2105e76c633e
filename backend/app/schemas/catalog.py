"""
Schémas Pydantic pour les classes, les cours et les classes-cours (espace admin).
"""

import uuid
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, field_validator

DEFAULT_CLASS_TIMEZONE = "Asia/Shanghai"


def _strip_required(v: str, label: str) -> str:
    if not v.strip():
        raise ValueError(f"{label} ne peut pas être vide.")
    return v.strip()


def _check_timezone(v: str) -> str:
    try:
        ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Fuseau horaire inconnu : {v}")
    return v


class ClassCreate(BaseModel):
    name: str
    timezone: str = DEFAULT_CLASS_TIMEZONE

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _strip_required(v, "Le nom de la classe")

    @field_validator("timezone")
    @classmethod
    def timezone_valid(cls, v: str) -> str:
        return _check_timezone(v)


class ClassUpdate(BaseModel):
    name: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v, "Le nom de la classe") if v is not None else v

    @field_validator("timezone")
    @classmethod
    def timezone_valid(cls, v: Optional[str]) -> Optional[str]:
        return _check_timezone(v) if v is not None else v


class ClassResponse(BaseModel):
    id: uuid.UUID
    name: str
    timezone: str

    model_config = {"from_attributes": True}


class CourseCreate(BaseModel):
    name: str
    level: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _strip_required(v, "Le nom du cours")

    @field_validator("level")
    @classmethod
    def level_not_empty(cls, v: str) -> str:
        return _strip_required(v, "Le niveau")


class CourseUpdate(BaseModel):
    name: Optional[str] = None
    level: Optional[str] = None

    @field_validator("name", "level")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v, "Le champ") if v is not None else v


class CourseResponse(BaseModel):
    id: uuid.UUID
    name: str
    level: str

    model_config = {"from_attributes": True}


class ClassCourseCreate(BaseModel):
    class_id: uuid.UUID
    course_id: uuid.UUID


class ClassCourseResponse(BaseModel):
    id: uuid.UUID
    class_id: uuid.UUID
    course_id: uuid.UUID
    class_name: Optional[str] = None
    course_name: Optional[str] = None
    course_level: Optional[str] = None


class CurriculumTagCreate(BaseModel):
    name: str
    description: str = ""

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _strip_required(v, "Le nom de l'étiquette")


class CurriculumTagUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v, "Le nom de l'étiquette") if v is not None else v


class CurriculumTagResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

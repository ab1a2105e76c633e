"""
Schémas Pydantic pour la gestion des familles par les enseignants.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, field_validator

from app.models.family import NOTIFY_ALL, NOTIFY_DAILY_DIGEST, NOTIFY_NONE

VALID_NOTIFICATION_PREFERENCES = {NOTIFY_ALL, NOTIFY_DAILY_DIGEST, NOTIFY_NONE}


class StudentIn(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de l'élève ne peut pas être vide.")
        return v.strip()


class StudentUpdateIn(StudentIn):
    """id absent = nouvel élève ; id fourni = élève existant renommé."""
    id: Optional[uuid.UUID] = None


def _students_not_empty(v: list) -> list:
    if not v:
        raise ValueError("Une famille doit compter au moins un élève.")
    return v


class FamilyCreate(BaseModel):
    parent_name: str
    note: str = ""
    email: Optional[EmailStr] = None
    class_course_id: uuid.UUID
    students: List[StudentIn]

    @field_validator("parent_name")
    @classmethod
    def parent_name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom du parent ne peut pas être vide.")
        return v.strip()

    @field_validator("students")
    @classmethod
    def at_least_one_student(cls, v: List[StudentIn]) -> List[StudentIn]:
        return _students_not_empty(v)


class FamilyUpdate(BaseModel):
    """
    Mise à jour complète de la famille.
    La liste students remplace l'existant : élèves absents supprimés, sans id ajoutés.
    """
    parent_name: str
    note: str = ""
    students: List[StudentUpdateIn]

    @field_validator("parent_name")
    @classmethod
    def parent_name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom du parent ne peut pas être vide.")
        return v.strip()

    @field_validator("students")
    @classmethod
    def at_least_one_student(cls, v: List[StudentUpdateIn]) -> List[StudentUpdateIn]:
        return _students_not_empty(v)


class NotificationSettingsUpdate(BaseModel):
    email: Optional[EmailStr] = None
    notification_preference: str

    @field_validator("notification_preference")
    @classmethod
    def valid_preference(cls, v: str) -> str:
        if v not in VALID_NOTIFICATION_PREFERENCES:
            raise ValueError(f"Préférence invalide. Valeurs acceptées : {sorted(VALID_NOTIFICATION_PREFERENCES)}")
        return v


class StudentResponse(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class FamilyResponse(BaseModel):
    id: uuid.UUID
    parent_name: str
    note: str
    email: Optional[str] = None
    notification_preference: str
    class_course_id: uuid.UUID
    class_name: Optional[str] = None
    course_name: Optional[str] = None
    created_at: Optional[datetime] = None
    students: List[StudentResponse] = []
    token: Optional[str] = None       # None = aucun lien actif (ou indéchiffrable)
    link_url: Optional[str] = None


class FamilyLinkIssued(BaseModel):
    """Réponse après émission d'un lien : le jeton en clair n'est transmis qu'ici et via la liste."""
    family_id: uuid.UUID
    token: str
    link_url: str


class FamilyLinkRevoked(BaseModel):
    family_id: uuid.UUID
    revoked_count: int

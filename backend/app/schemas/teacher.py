"""
Schémas Pydantic pour la gestion des enseignants (espace admin).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, field_validator

MIN_PASSWORD_LENGTH = 6


def _check_password(v: Optional[str]) -> Optional[str]:
    if v is not None and len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Le mot de passe doit contenir au moins {MIN_PASSWORD_LENGTH} caractères.")
    return v


class TeacherCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    class_course_ids: List[uuid.UUID] = []

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password(v)


class TeacherUpdate(BaseModel):
    """Champs absents = inchangés. class_course_ids fourni = remplace toutes les affectations."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    class_course_ids: Optional[List[uuid.UUID]] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip() if v else v

    @field_validator("password")
    @classmethod
    def password_length(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v)


class TeacherStatusUpdate(BaseModel):
    is_active: bool


class PasswordReset(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _check_password(v)


class TeacherResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    is_active: bool
    is_admin: bool
    created_at: Optional[datetime]
    class_course_names: List[str] = []

    model_config = {"from_attributes": True}

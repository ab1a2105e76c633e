"""
Schémas Pydantic pour l'authentification (sessions admin / enseignant).
"""

import uuid
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, field_validator

SessionRole = Literal["admin", "teacher"]


class SessionPayload(BaseModel):
    """Contenu signé du cookie de session."""
    role: SessionRole
    teacher_id: Optional[uuid.UUID] = None
    exp: int  # Expiration (timestamp Unix, secondes)


class AdminLogin(BaseModel):
    username: str
    password: str

    @field_validator("username", "password")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Le champ ne peut pas être vide.")
        return v


class TeacherLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Le mot de passe ne peut pas être vide.")
        return v


class LoginResponse(BaseModel):
    role: SessionRole
    teacher_id: Optional[uuid.UUID] = None

"""
Modèles SQLAlchemy pour les familles, leurs élèves et leurs liens d'accès.

Un lien famille (family_links) remplace un compte parent :
- token_hash : jeton chiffré AES-256-GCM (réversible, pour le réafficher à l'enseignant)
- token_hmac : HMAC-SHA256 déterministe du jeton, indexé, utilisé pour la recherche
Au plus un lien « active » par famille.
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base

LINK_ACTIVE = "active"
LINK_REVOKED = "revoked"

NOTIFY_ALL = "all"
NOTIFY_DAILY_DIGEST = "daily_digest"
NOTIFY_NONE = "none"


class Family(Base):
    __tablename__ = "families"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    parent_name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=True)
    note = Column(Text, nullable=False, default="")
    notification_preference = Column(String(20), nullable=False, default=NOTIFY_ALL)  # all, daily_digest, none
    class_course_id = Column(UUID(as_uuid=True), ForeignKey("class_courses.id", ondelete="CASCADE"), nullable=False)
    created_by_teacher_id = Column(UUID(as_uuid=True), ForeignKey("teachers.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Student(Base):
    __tablename__ = "students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    family_id = Column(UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(120), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class FamilyLink(Base):
    __tablename__ = "family_links"
    __table_args__ = (Index("family_links_token_hmac_idx", "token_hmac", unique=True),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    family_id = Column(UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(Text, nullable=False)
    token_hmac = Column(Text, nullable=True)  # NULL = lien antérieur à l'index HMAC (voir backfill)
    status = Column(String(20), nullable=False, default=LINK_ACTIVE)  # active, revoked
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class NotificationPreference(Base):
    """Choix du parent (via son lien) de recevoir ou non les emails."""
    __tablename__ = "notification_preferences"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    family_id = Column(UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), unique=True, nullable=False)
    email_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

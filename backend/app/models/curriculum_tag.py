"""
Modèles SQLAlchemy pour les étiquettes de programme (compétences du curriculum)
et leur rattachement aux phrases des devoirs.
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class CurriculumTag(Base):
    __tablename__ = "curriculum_tags"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(120), unique=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TaskItemTag(Base):
    __tablename__ = "task_item_tags"

    task_item_id = Column(UUID(as_uuid=True), ForeignKey("task_items.id", ondelete="CASCADE"), primary_key=True)
    curriculum_tag_id = Column(
        UUID(as_uuid=True), ForeignKey("curriculum_tags.id", ondelete="CASCADE"), primary_key=True
    )

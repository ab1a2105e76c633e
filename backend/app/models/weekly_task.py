"""
Modèles SQLAlchemy pour les devoirs hebdomadaires (10 phrases à prononcer)
et le suivi des notifications envoyées aux familles.
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base

TASK_DRAFT = "draft"
TASK_PUBLISHED = "published"


class WeeklyTask(Base):
    __tablename__ = "weekly_tasks"
    __table_args__ = (UniqueConstraint("class_course_id", "week_start", name="weekly_task_unique"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_course_id = Column(UUID(as_uuid=True), ForeignKey("class_courses.id", ondelete="CASCADE"), nullable=False)
    week_start = Column(DateTime(timezone=True), nullable=False)
    week_end = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=TASK_DRAFT)  # draft, published
    created_by_admin = Column(UUID(as_uuid=True), ForeignKey("teachers.id", ondelete="RESTRICT"), nullable=False)


class TaskItem(Base):
    __tablename__ = "task_items"
    __table_args__ = (UniqueConstraint("weekly_task_id", "order_index", name="task_item_order_unique"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    weekly_task_id = Column(UUID(as_uuid=True), ForeignKey("weekly_tasks.id", ondelete="CASCADE"), nullable=False)
    order_index = Column(Integer, nullable=False)
    sentence_text = Column(Text, nullable=False)
    reference_audio_url = Column(Text, nullable=True)
    reference_audio_status = Column(String(20), nullable=False, default="pending")  # pending, ready, failed


class TaskNotification(Base):
    """Trace d'un email « nouveau devoir » envoyé (ou non) à une famille."""
    __tablename__ = "task_notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    weekly_task_id = Column(UUID(as_uuid=True), ForeignKey("weekly_tasks.id", ondelete="CASCADE"), nullable=False)
    family_id = Column(UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, sent, failed
    sent_at = Column(DateTime(timezone=True), nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

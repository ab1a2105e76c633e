"""
Modèle SQLAlchemy pour les enregistrements des élèves et leur score.
Une seule soumission par (élève, phrase) : une nouvelle tentative écrase la précédente.
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("student_id", "task_item_id", name="submission_student_task_unique"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    task_item_id = Column(UUID(as_uuid=True), ForeignKey("task_items.id", ondelete="CASCADE"), nullable=False)
    audio_url = Column(Text, nullable=False)
    transcript = Column(Text, nullable=False)
    score = Column(Integer, nullable=False)   # 0..100
    stars = Column(Integer, nullable=False)   # 1..3
    feedback = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

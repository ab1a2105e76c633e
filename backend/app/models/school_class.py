"""
Modèles SQLAlchemy pour les classes, les cours et leurs associations.
Nommé school_class pour éviter le conflit avec le mot-clé Python 'class'.
"""

import uuid
from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(120), nullable=False)
    timezone = Column(String(80), nullable=False, default="Asia/Shanghai")


class Course(Base):
    __tablename__ = "courses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(120), nullable=False)
    level = Column(String(80), nullable=False)  # Ex: beginner, intermediate


class ClassCourse(Base):
    """Association classe ↔ cours, unité à laquelle sont rattachés familles et devoirs."""
    __tablename__ = "class_courses"
    __table_args__ = (UniqueConstraint("class_id", "course_id", name="class_course_unique"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)

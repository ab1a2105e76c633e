"""
Schémas Pydantic pour le tableau de bord enseignant et le bilan d'une classe-cours.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class StarDistribution(BaseModel):
    one_star: int = 0
    two_star: int = 0
    three_star: int = 0


class StudentRef(BaseModel):
    id: uuid.UUID
    name: str


class RecentCompletion(BaseModel):
    student_name: str
    stars: int
    score: int
    completed_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    """Statistiques de la semaine courante sur toutes les classes-cours de l'enseignant."""
    total_submissions_this_week: int = 0
    average_score: float = 0
    star_distribution: StarDistribution = StarDistribution()
    students_not_submitted: List[StudentRef] = []
    recent_completions: List[RecentCompletion] = []


class StudentProgress(BaseModel):
    student_id: uuid.UUID
    student_name: str
    completed_tasks: int
    total_tasks: int
    average_score: float
    low_score_sentences: int


class LowScoreItem(BaseModel):
    task_item_id: uuid.UUID
    student_id: uuid.UUID
    student_name: str
    sentence_text: str
    score: int
    feedback: str
    audio_url: str


class ClassSummary(BaseModel):
    class_name: str = ""
    course_name: str = ""
    total_students: int = 0
    completion_rate: float = 0   # % d'élèves ayant au moins une soumission
    average_score: float = 0
    students: List[StudentProgress] = []
    low_score_items: List[LowScoreItem] = []

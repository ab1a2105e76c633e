"""
Schémas Pydantic pour l'espace famille (accès par jeton, sans compte).
"""

import uuid
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, HttpUrl, field_validator

from app.schemas.family import StudentResponse
from app.schemas.weekly_task import TaskItemResponse, WeeklyTaskResponse

MIN_TOKEN_LENGTH = 8


class ResolvedFamilyLink(BaseModel):
    """Résultat de la résolution d'un jeton famille."""
    id: uuid.UUID
    family_id: uuid.UUID
    status: str


class FamilySummary(BaseModel):
    id: uuid.UUID
    parent_name: str
    note: str

    model_config = {"from_attributes": True}


class FamilyLinkView(BaseModel):
    family: FamilySummary
    students: List[StudentResponse]


class SubmissionCreate(BaseModel):
    """Le transcript est produit côté client (service de transcription externe)."""
    token: str
    student_id: uuid.UUID
    task_item_id: uuid.UUID
    audio_url: HttpUrl
    transcript: str = ""

    @field_validator("token")
    @classmethod
    def token_length(cls, v: str) -> str:
        if len(v) < MIN_TOKEN_LENGTH:
            raise ValueError("Jeton invalide.")
        return v


class AlignedWord(BaseModel):
    text: str
    status: Literal["correct", "incorrect", "missing", "extra"]
    reference_index: Optional[int] = None
    transcript_index: Optional[int] = None


class SubmissionResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    task_item_id: uuid.UUID
    audio_url: str
    transcript: str
    score: int
    stars: int
    feedback: str
    created_at: Optional[datetime] = None
    words: List[AlignedWord] = []

    model_config = {"from_attributes": True}


class WeeklyTaskView(BaseModel):
    """Devoir de la semaine courante ; task=None s'il n'y en a pas."""
    task: Optional[WeeklyTaskResponse] = None
    items: List[TaskItemResponse] = []
    students: List[StudentResponse] = []
    submissions: List[SubmissionResponse] = []


class NotificationPreferencesUpdate(BaseModel):
    token: str
    email_enabled: bool


class NotificationPreferencesResponse(BaseModel):
    email_enabled: bool


class LowScoreSubmission(BaseModel):
    student_id: uuid.UUID
    task_item_id: uuid.UUID
    score: int
    feedback: str


class FamilyPerformance(BaseModel):
    """completion_rate : soumissions / (élèves × 10 phrases), plafonné à 1."""
    average_score: float = 0
    completion_rate: float = 0
    low_score_items: List[LowScoreSubmission] = []
    students: List[StudentResponse] = []
    submissions: List[SubmissionResponse] = []


class WeeklyProgress(BaseModel):
    week_start: datetime
    week_end: datetime
    avg_score: float
    avg_stars: float
    completion_rate: float
    submission_count: int


class ProgressHistory(BaseModel):
    weeks: List[WeeklyProgress] = []
    student_names: Dict[uuid.UUID, str] = {}

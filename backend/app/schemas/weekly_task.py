"""
Schémas Pydantic pour les devoirs hebdomadaires (espace admin).
Un devoir = exactement 10 phrases, numérotées de 1 à 10.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, HttpUrl, field_validator, model_validator

from app.models.weekly_task import TASK_DRAFT, TASK_PUBLISHED

ITEMS_PER_TASK = 10
VALID_TASK_STATUSES = {TASK_DRAFT, TASK_PUBLISHED}


class TaskItemIn(BaseModel):
    order_index: int = Field(ge=1, le=ITEMS_PER_TASK)
    sentence_text: str
    reference_audio_url: Optional[HttpUrl] = None
    tag_ids: List[uuid.UUID] = []

    @field_validator("sentence_text")
    @classmethod
    def sentence_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("La phrase ne peut pas être vide.")
        return v.strip()


class WeeklyTaskCreate(BaseModel):
    class_course_ids: List[uuid.UUID]
    week_start: datetime
    week_end: datetime
    status: str = TASK_PUBLISHED
    items: List[TaskItemIn]

    @field_validator("class_course_ids")
    @classmethod
    def at_least_one_class_course(cls, v: List[uuid.UUID]) -> List[uuid.UUID]:
        if not v:
            raise ValueError("Au moins une classe-cours doit être sélectionnée.")
        return v

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: str) -> str:
        if v not in VALID_TASK_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {sorted(VALID_TASK_STATUSES)}")
        return v

    @field_validator("items")
    @classmethod
    def ten_distinct_items(cls, v: List[TaskItemIn]) -> List[TaskItemIn]:
        if len(v) != ITEMS_PER_TASK:
            raise ValueError(f"Un devoir doit contenir exactement {ITEMS_PER_TASK} phrases.")
        if len({item.order_index for item in v}) != ITEMS_PER_TASK:
            raise ValueError("Les numéros d'ordre des phrases doivent être uniques.")
        return v

    @model_validator(mode="after")
    def week_end_after_start(self) -> "WeeklyTaskCreate":
        if self.week_end <= self.week_start:
            raise ValueError("La fin de semaine doit être postérieure au début.")
        return self


class TaskItemResponse(BaseModel):
    id: uuid.UUID
    order_index: int
    sentence_text: str
    reference_audio_url: Optional[str] = None
    reference_audio_status: str

    model_config = {"from_attributes": True}


class WeeklyTaskResponse(BaseModel):
    id: uuid.UUID
    class_course_id: uuid.UUID
    week_start: datetime
    week_end: datetime
    status: str
    created_by_admin: Optional[uuid.UUID] = None
    class_name: Optional[str] = None
    course_name: Optional[str] = None

    model_config = {"from_attributes": True}


class WeeklyTaskDetail(BaseModel):
    task: WeeklyTaskResponse
    items: List[TaskItemResponse]


class TaskNotificationResponse(BaseModel):
    id: uuid.UUID
    family_id: uuid.UUID
    status: str
    sent_at: Optional[datetime] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# --- Espace enseignant ---

class BulkPublishRequest(BaseModel):
    task_ids: List[uuid.UUID]

    @field_validator("task_ids")
    @classmethod
    def at_least_one_task(cls, v: List[uuid.UUID]) -> List[uuid.UUID]:
        if not v:
            raise ValueError("Au moins un devoir doit être sélectionné.")
        return v


class BulkPublishResult(BaseModel):
    updated_count: int
    tasks: List[WeeklyTaskResponse]


class WeeklyTaskDuplicate(BaseModel):
    """Copie les phrases d'un devoir vers une autre classe-cours et/ou une autre semaine (en brouillon)."""
    source_task_id: uuid.UUID
    target_class_course_id: uuid.UUID
    week_start: datetime
    week_end: datetime

    @model_validator(mode="after")
    def week_end_after_start(self) -> "WeeklyTaskDuplicate":
        if self.week_end <= self.week_start:
            raise ValueError("La fin de semaine doit être postérieure au début.")
        return self


class TaskItemsCopy(BaseModel):
    source_task_id: uuid.UUID
    target_task_id: uuid.UUID

    @model_validator(mode="after")
    def distinct_tasks(self) -> "TaskItemsCopy":
        if self.source_task_id == self.target_task_id:
            raise ValueError("Le devoir source et le devoir cible doivent être différents.")
        return self


class TaskItemsCopied(BaseModel):
    target_task_id: uuid.UUID
    item_count: int

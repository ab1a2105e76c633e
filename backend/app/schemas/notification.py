"""
Schémas Pydantic pour les rapports d'envoi de notifications.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel


class PublishNotificationResult(BaseModel):
    """Rapport d'envoi des emails « nouveau devoir » pour un devoir publié."""
    weekly_task_id: uuid.UUID
    sent_count: int
    skipped_count: int
    errors: List[str]


class DigestCompletion(BaseModel):
    student_name: str
    stars: int
    timestamp: datetime
    sentence_text: str


class DailyDigestResult(BaseModel):
    date: date
    total_families: int
    emails_sent: int
    errors: int


class CompletionEmail(BaseModel):
    student_name: str
    stars: int
    timestamp: Optional[datetime] = None
    sentence_text: str

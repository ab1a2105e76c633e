"""
Modèle SQLAlchemy pour la configuration administrateur (seuils d'étoiles).
La ligne la plus récente fait foi.
"""

import uuid
from sqlalchemy import Column, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB, UUID

from app.database import Base


class AdminConfig(Base):
    __tablename__ = "admin_config"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scoring_thresholds = Column("scoring_thresholds_json", JSONB, nullable=False)  # {"one_star_max", "two_star_max"}
    created_at = Column(DateTime(timezone=True), server_default=func.now())

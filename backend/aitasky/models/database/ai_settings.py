"""Per-user AI assistant settings model."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, Integer, Text
from aitasky.core.storage.database import Base


class UserAISettings(Base):
    """Default provider, model and generation parameters for a user."""

    __tablename__ = "user_ai_settings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(255), nullable=False, unique=True)
    default_provider = Column(String(50), nullable=False)
    default_model = Column(String(255), nullable=False)
    temperature = Column(Float, nullable=False)
    max_tokens = Column(Integer, nullable=False)
    system_prompt = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

"""User API key database model."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, UniqueConstraint
from aitasky.core.storage.database import Base


class UserApiKey(Base):
    """Encrypted third-party API key owned by one user for one provider."""

    __tablename__ = "user_api_keys"
    __table_args__ = (UniqueConstraint("user_id", "provider", name="uq_user_api_keys_user_provider"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    provider = Column(String(50), nullable=False)  # openai, google, anthropic, openrouter, ...
    key_encrypted = Column(Text, nullable=False)  # hex AES-256-GCM ciphertext
    iv = Column(String(64), nullable=False)
    auth_tag = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

"""Database models."""

from aitasky.models.database.ai_settings import UserAISettings
from aitasky.models.database.api_key import UserApiKey

__all__ = ["UserAISettings", "UserApiKey"]

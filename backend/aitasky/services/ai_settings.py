"""User AI settings persistence."""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aitasky.core.config import Settings, get_settings
from aitasky.models.database import UserAISettings


async def get_or_create_ai_settings(
    db: AsyncSession, user_id: str, settings: Optional[Settings] = None
) -> UserAISettings:
    """Load a user's AI settings, creating them from the configured defaults if missing."""
    query = select(UserAISettings).where(UserAISettings.user_id == user_id)
    result = await db.execute(query)
    ai_settings = result.scalar_one_or_none()

    if ai_settings:
        return ai_settings

    settings = settings or get_settings()
    ai_settings = UserAISettings(
        user_id=user_id,
        default_provider=settings.default_provider,
        default_model=settings.default_model,
        temperature=settings.default_temperature,
        max_tokens=settings.default_max_tokens,
        system_prompt=settings.default_system_prompt,
    )
    db.add(ai_settings)
    await db.commit()
    await db.refresh(ai_settings)
    return ai_settings


async def update_ai_settings(db: AsyncSession, user_id: str, changes: dict) -> UserAISettings:
    """Apply a partial update to a user's AI settings."""
    ai_settings = await get_or_create_ai_settings(db, user_id)

    for field, value in changes.items():
        if value is None:
            continue
        setattr(ai_settings, field, getattr(value, "value", value))
    ai_settings.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(ai_settings)
    return ai_settings

"""Tests for UserApiKey database model."""

import pytest
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from aitasky.models.database import UserApiKey


def _api_key(user_id="user-1", provider="openai", **overrides):
    values = {
        "user_id": user_id,
        "provider": provider,
        "key_encrypted": "deadbeef",
        "iv": "00" * 12,
        "auth_tag": "11" * 16,
    }
    values.update(overrides)
    return UserApiKey(**values)


@pytest.mark.unit
class TestUserApiKeyModel:
    """Test cases for the UserApiKey model."""

    @pytest.mark.asyncio
    async def test_create_api_key(self, db_session):
        """Test creating a new API key record."""
        api_key = _api_key()
        db_session.add(api_key)
        await db_session.commit()
        await db_session.refresh(api_key)

        assert api_key.id is not None
        assert len(api_key.id) == 36
        assert api_key.provider == "openai"
        assert api_key.key_encrypted == "deadbeef"
        assert isinstance(api_key.created_at, datetime)
        assert isinstance(api_key.updated_at, datetime)

    @pytest.mark.asyncio
    async def test_user_provider_unique(self, db_session):
        """Test that (user_id, provider) is unique."""
        db_session.add(_api_key())
        await db_session.commit()

        db_session.add(_api_key(key_encrypted="cafebabe"))

        with pytest.raises(IntegrityError):
            await db_session.commit()

    @pytest.mark.asyncio
    async def test_same_provider_different_users(self, db_session):
        """Test that two users can each store a key for one provider."""
        db_session.add(_api_key(user_id="user-1"))
        db_session.add(_api_key(user_id="user-2"))
        await db_session.commit()

        result = await db_session.execute(select(UserApiKey).where(UserApiKey.provider == "openai"))
        assert {key.user_id for key in result.scalars().all()} == {"user-1", "user-2"}

    @pytest.mark.asyncio
    async def test_different_providers(self, db_session):
        """Test storing keys for different providers."""
        providers = ["openai", "google", "anthropic", "openrouter", "tavily"]

        for provider in providers:
            db_session.add(_api_key(provider=provider))
        await db_session.commit()

        result = await db_session.execute(select(UserApiKey))
        assert {key.provider for key in result.scalars().all()} == set(providers)

"""Tests for Settings API routes."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from aitasky.api.dependencies import get_vault
from aitasky.core.config import get_settings
from aitasky.models.database import UserApiKey


def _completion(content: str = "Hi") -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


@pytest.mark.api
class TestAuthentication:
    """Test cases for caller identification."""

    @pytest.mark.asyncio
    async def test_missing_user_header(self, app):
        """Test that requests without a user id are rejected."""
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/v1/settings/api-keys")

        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized"


@pytest.mark.api
class TestApiKeyAPI:
    """Test cases for storing and listing API keys."""

    @pytest.mark.asyncio
    async def test_list_api_keys_empty(self, client):
        response = await client.get("/api/v1/settings/api-keys")

        assert response.status_code == 200
        assert response.json()["api_keys"] == []

    @pytest.mark.asyncio
    async def test_set_api_key_is_encrypted_at_rest(self, client, db_session, user_id):
        """Test that the stored row holds ciphertext, never the plaintext key."""
        response = await client.post(
            "/api/v1/settings/api-keys", json={"provider": "openai", "api_key": "sk-test123"}
        )

        assert response.status_code == 201
        assert response.json()["message"] == "API key for openai saved successfully"
        assert "sk-test123" not in response.text

        result = await db_session.execute(select(UserApiKey).where(UserApiKey.user_id == user_id))
        row = result.scalar_one()
        assert row.provider == "openai"
        assert "sk-test123" not in row.key_encrypted
        assert len(bytes.fromhex(row.iv)) == 12
        assert len(bytes.fromhex(row.auth_tag)) == 16

    @pytest.mark.asyncio
    async def test_list_after_set(self, client):
        await client.post(
            "/api/v1/settings/api-keys", json={"provider": "anthropic", "api_key": "sk-ant"}
        )

        response = await client.get("/api/v1/settings/api-keys")

        keys = response.json()["api_keys"]
        assert len(keys) == 1
        assert keys[0]["provider"] == "anthropic"
        assert keys[0]["is_configured"] is True
        assert keys[0]["created_at"] is not None
        assert "api_key" not in keys[0]
        assert "sk-ant" not in response.text

    @pytest.mark.asyncio
    async def test_update_replaces_key(self, client, credential_store, vault, user_id):
        """Test that saving twice keeps one row with the latest key."""
        await client.post("/api/v1/settings/api-keys", json={"provider": "google", "api_key": "old"})
        await client.post("/api/v1/settings/api-keys", json={"provider": "google", "api_key": "new"})

        stored = await credential_store.get(user_id, "google")

        assert vault.decrypt_secret(stored.secret) == "new"
        assert len(await credential_store.list_for_user(user_id)) == 1

    @pytest.mark.asyncio
    async def test_unknown_provider_rejected(self, client):
        response = await client.post(
            "/api/v1/settings/api-keys", json={"provider": "nope", "api_key": "x"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_empty_key_rejected(self, client):
        response = await client.post(
            "/api/v1/settings/api-keys", json={"provider": "openai", "api_key": ""}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_encryption_failure(self, app, client):
        """Test that an encryption failure is reported without the key."""
        broken = MagicMock()
        broken.encrypt.side_effect = ValueError("boom sk-leak")
        app.dependency_overrides[get_vault] = lambda: broken

        response = await client.post(
            "/api/v1/settings/api-keys", json={"provider": "openai", "api_key": "sk-leak"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Failed to encrypt API key for openai"

    @pytest.mark.asyncio
    async def test_delete_api_key(self, client):
        await client.post("/api/v1/settings/api-keys", json={"provider": "kilo", "api_key": "k"})

        response = await client.delete("/api/v1/settings/api-keys/kilo")

        assert response.status_code == 204
        assert (await client.get("/api/v1/settings/api-keys")).json()["api_keys"] == []

    @pytest.mark.asyncio
    async def test_delete_missing_key(self, client):
        response = await client.delete("/api/v1/settings/api-keys/openai")

        assert response.status_code == 404
        assert response.json()["detail"] == "No API key found for provider: openai"

    @pytest.mark.asyncio
    async def test_keys_are_per_user(self, app, client):
        await client.post("/api/v1/settings/api-keys", json={"provider": "openai", "api_key": "sk-a"})

        transport = ASGITransport(app=app)
        async with AsyncClient(
            transport=transport, base_url="http://test", headers={"X-User-Id": "someone-else"}
        ) as other:
            response = await other.get("/api/v1/settings/api-keys")

        assert response.json()["api_keys"] == []


@pytest.mark.api
class TestApiKeyTestAPI:
    """Test cases for validating a key before saving."""

    @pytest.mark.asyncio
    async def test_valid_llm_key(self, client):
        with patch("aitasky.core.llm.provider.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = _completion()

            response = await client.post(
                "/api/v1/settings/api-keys/test",
                json={"provider": "anthropic", "api_key": "sk-ant-test"},
            )

        assert response.status_code == 200
        assert response.json() == {"valid": True, "message": "API key for anthropic is valid"}
        call_kwargs = mock_acompletion.call_args.kwargs
        assert call_kwargs["api_key"] == "sk-ant-test"
        assert call_kwargs["max_tokens"] == 10

    @pytest.mark.asyncio
    async def test_invalid_llm_key(self, client):
        with patch("aitasky.core.llm.provider.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = Exception("Invalid API key sk-bad")

            response = await client.post(
                "/api/v1/settings/api-keys/test",
                json={"provider": "openai", "api_key": "sk-bad"},
            )

        assert response.status_code == 200
        assert response.json()["valid"] is False
        assert "sk-bad" not in response.text

    @pytest.mark.asyncio
    async def test_tavily_key(self, client):
        with patch("aitasky.core.search.tavily.TavilySearch.search", new_callable=AsyncMock) as mock_search:
            response = await client.post(
                "/api/v1/settings/api-keys/test",
                json={"provider": "tavily", "api_key": "tvly-key"},
            )

        assert response.json()["valid"] is True
        mock_search.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_test_does_not_store(self, client):
        with patch("aitasky.core.llm.provider.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = _completion()
            await client.post(
                "/api/v1/settings/api-keys/test",
                json={"provider": "openai", "api_key": "sk-test"},
            )

        assert (await client.get("/api/v1/settings/api-keys")).json()["api_keys"] == []


@pytest.mark.api
class TestProvidersAPI:
    """Test cases for the provider catalogue endpoint."""

    @pytest.mark.asyncio
    async def test_key_availability_flags(self, client):
        await client.post("/api/v1/settings/api-keys", json={"provider": "anthropic", "api_key": "k"})

        response = await client.get("/api/v1/settings/llm-providers")

        assert response.status_code == 200
        providers = {p["id"]: p for p in response.json()["providers"]}
        assert providers["openai"]["has_fallback_key"] is True
        assert providers["openai"]["has_user_key"] is False
        assert providers["anthropic"]["has_fallback_key"] is False
        assert providers["anthropic"]["has_user_key"] is True
        assert providers["google"]["models"]

    @pytest.mark.asyncio
    async def test_exclude_search(self, client):
        response = await client.get("/api/v1/settings/llm-providers", params={"include_search": False})

        ids = [p["id"] for p in response.json()["providers"]]
        assert "tavily" not in ids


@pytest.mark.api
class TestAISettingsAPI:
    """Test cases for per-user AI defaults."""

    @pytest.mark.asyncio
    async def test_defaults_created_on_first_read(self, client):
        settings = get_settings()

        response = await client.get("/api/v1/settings/ai")

        assert response.status_code == 200
        data = response.json()
        assert data["default_provider"] == settings.default_provider
        assert data["default_model"] == settings.default_model
        assert data["max_tokens"] == settings.default_max_tokens

    @pytest.mark.asyncio
    async def test_partial_update(self, client):
        response = await client.put(
            "/api/v1/settings/ai",
            json={"default_provider": "anthropic", "temperature": 1.5},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["default_provider"] == "anthropic"
        assert data["temperature"] == 1.5
        assert data["default_model"] == get_settings().default_model

        assert (await client.get("/api/v1/settings/ai")).json()["temperature"] == 1.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"temperature": 2.5}, {"temperature": -0.1}, {"max_tokens": 0}, {"max_tokens": 9000}],
    )
    async def test_out_of_range_rejected(self, client, payload):
        response = await client.put("/api/v1/settings/ai", json=payload)

        assert response.status_code == 422


@pytest.mark.api
class TestEnvStatusAPI:
    """Test cases for the env status endpoint."""

    @pytest.mark.asyncio
    async def test_reports_loaded_without_values(self, client):
        response = await client.get("/api/v1/settings/env-status")

        assert response.status_code == 200
        data = response.json()
        assert data["fallback_keys"]["openai"] == "loaded"
        assert data["fallback_keys"]["tavily"] == "loaded"
        assert data["fallback_keys"]["anthropic"] == "missing"
        assert data["encryption_key"] in ("loaded", "missing")
        assert "env-openai-key" not in response.text

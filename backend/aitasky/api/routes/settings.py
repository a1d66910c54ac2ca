"""Settings API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from aitasky.api.dependencies import get_credential_store, get_current_user_id, get_vault
from aitasky.core.config import FallbackKeySet, get_fallback_keys, get_settings
from aitasky.core.llm.providers import (
    AIProvider,
    get_available_providers,
    get_test_model_for_provider,
)
from aitasky.core.security.encryption import CredentialVault
from aitasky.core.storage.credential_store import CredentialStore, StoredCredential
from aitasky.core.storage.database import get_db
from aitasky.models.schemas.settings import (
    AISettingsResponse,
    AISettingsUpdate,
    ApiKeyCreate,
    ApiKeyListResponse,
    ApiKeyStatus,
    ApiKeyTest,
    EnvStatusResponse,
    LLMModel,
    LLMProviderInfo,
    LLMProvidersResponse,
)
from aitasky.services.ai_settings import get_or_create_ai_settings, update_ai_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/api-keys", response_model=ApiKeyListResponse)
async def list_api_keys(
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    List the caller's configured API keys (without exposing actual keys).

    Returns status information for each provider.
    """
    credentials = await store.list_for_user(user_id)

    return ApiKeyListResponse(
        api_keys=[
            ApiKeyStatus(
                provider=credential.provider,
                is_configured=True,
                created_at=credential.created_at.isoformat() if credential.created_at else None,
                updated_at=credential.updated_at.isoformat() if credential.updated_at else None,
            )
            for credential in credentials
        ]
    )


@router.post("/api-keys", status_code=status.HTTP_201_CREATED)
async def set_api_key(
    key_data: ApiKeyCreate,
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
    vault: CredentialVault = Depends(get_vault),
):
    """
    Set or update the caller's API key for a provider.

    The key is encrypted before storage and never returned in responses.
    """
    provider = key_data.provider.value

    try:
        secret = vault.encrypt(key_data.api_key)
    except Exception as e:
        logger.error("Failed to encrypt API key (user=%s, provider=%s)", user_id, provider)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to encrypt API key for {provider}",
        ) from e

    await store.upsert(StoredCredential.from_secret(user_id, provider, secret))
    logger.info("Stored API key (user=%s, provider=%s)", user_id, provider)

    return {"message": f"API key for {provider} saved successfully"}


@router.delete("/api-keys/{provider}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_api_key(
    provider: str,
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
):
    """Delete the caller's API key for a provider."""
    deleted = await store.delete(user_id, provider.lower())

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No API key found for provider: {provider}",
        )


@router.post("/api-keys/test")
async def test_api_key(
    test_data: ApiKeyTest,
    user_id: str = Depends(get_current_user_id),
):
    """
    Test an API key before saving it.

    Makes a lightweight call to verify the key is valid: a tiny completion for
    model providers, a one-result search for Tavily.
    """
    provider_name = test_data.provider.value

    try:
        if test_data.provider == AIProvider.TAVILY:
            from aitasky.core.search.tavily import TavilySearch

            await TavilySearch(api_key=test_data.api_key).search("ping", max_results=1)
        else:
            from aitasky.core.llm.provider import LLMProvider

            provider = LLMProvider(
                provider=provider_name,
                model=get_test_model_for_provider(provider_name),
                api_key=test_data.api_key,
                temperature=0.1,
                max_tokens=10,
            )
            await provider.generate(
                messages=[{"role": "user", "content": "Hi"}],
                stream=False,
            )

        return {
            "valid": True,
            "message": f"API key for {provider_name} is valid",
        }

    except Exception as e:
        logger.info("API key test failed (user=%s, provider=%s): %s", user_id, provider_name, type(e).__name__)
        return {
            "valid": False,
            "message": f"API key validation failed for {provider_name}",
        }


@router.get("/llm-providers", response_model=LLMProvidersResponse)
async def list_llm_providers(
    include_search: bool = True,
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
    fallback_keys: FallbackKeySet = Depends(get_fallback_keys),
):
    """
    Get the supported providers with their curated models.

    Each entry reports whether a house key and a personal key are available so
    the UI can show which providers are usable.
    """
    user_providers = {credential.provider for credential in await store.list_for_user(user_id)}

    providers = [
        LLMProviderInfo(
            id=p["id"],
            name=p["name"],
            models=[LLMModel(id=m["id"], name=m["name"]) for m in p["models"]],
            env_key=p.get("env_key"),
            has_fallback_key=p["id"] in fallback_keys,
            has_user_key=p["id"] in user_providers,
        )
        for p in get_available_providers(include_search=include_search)
    ]

    return LLMProvidersResponse(providers=providers)


@router.get("/ai", response_model=AISettingsResponse)
async def get_ai_settings(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get the caller's AI assistant defaults, creating them on first access."""
    ai_settings = await get_or_create_ai_settings(db, user_id)
    return AISettingsResponse.model_validate(ai_settings)


@router.put("/ai", response_model=AISettingsResponse)
async def put_ai_settings(
    update: AISettingsUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update the caller's AI assistant defaults."""
    ai_settings = await update_ai_settings(db, user_id, update.model_dump(exclude_unset=True))
    return AISettingsResponse.model_validate(ai_settings)


@router.get("/env-status", response_model=EnvStatusResponse)
async def env_status(
    fallback_keys: FallbackKeySet = Depends(get_fallback_keys),
):
    """Report which process-level secrets are loaded, without their values."""
    settings = get_settings()
    encryption_key = settings.ai_encryption_key

    return EnvStatusResponse(
        encryption_key="loaded" if encryption_key and encryption_key.get_secret_value() else "missing",
        fallback_keys={
            provider.value: "loaded" if provider.value in fallback_keys else "missing"
            for provider in AIProvider
        },
    )

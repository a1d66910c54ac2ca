"""Settings API schemas."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from aitasky.core.llm.providers import AIProvider


class LLMModel(BaseModel):
    """Schema for an LLM model."""

    id: str = Field(..., description="Model identifier (e.g., 'gpt-4o', 'claude-sonnet')")
    name: str = Field(..., description="Display name for the model")


class LLMProviderInfo(BaseModel):
    """Schema for a provider with its curated models and key availability."""

    id: str = Field(..., description="Provider identifier (e.g., 'openai', 'anthropic')")
    name: str = Field(..., description="Display name for the provider")
    models: list[LLMModel] = Field(..., description="Available models for this provider")
    env_key: Optional[str] = Field(None, description="Environment variable name for the house key")
    has_fallback_key: bool = Field(False, description="Whether a house key is configured")
    has_user_key: bool = Field(False, description="Whether the caller stored a personal key")


class LLMProvidersResponse(BaseModel):
    """Schema for listing all available providers and models."""

    providers: list[LLMProviderInfo] = Field(..., description="List of available providers")


class ApiKeyCreate(BaseModel):
    """Schema for creating/updating an API key."""

    provider: AIProvider = Field(..., description="Provider name (openai, google, anthropic, ...)")
    api_key: str = Field(..., min_length=1, description="The API key to store (will be encrypted)")


class ApiKeyTest(BaseModel):
    """Schema for testing an API key before saving."""

    provider: AIProvider = Field(..., description="Provider name")
    api_key: str = Field(..., min_length=1, description="The API key to test")


class ApiKeyStatus(BaseModel):
    """Schema for API key status response (without exposing actual key)."""

    provider: str = Field(..., description="Provider name")
    is_configured: bool = Field(..., description="Whether a key is configured for this provider")
    created_at: Optional[str] = Field(None, description="When the key was added (ISO format)")
    updated_at: Optional[str] = Field(None, description="When the key was last replaced (ISO format)")


class ApiKeyListResponse(BaseModel):
    """Schema for listing all API key statuses."""

    api_keys: list[ApiKeyStatus]


class AISettingsResponse(BaseModel):
    """Schema for a user's AI assistant defaults."""

    model_config = ConfigDict(from_attributes=True)

    default_provider: str
    default_model: str
    temperature: float
    max_tokens: int
    system_prompt: str


class AISettingsUpdate(BaseModel):
    """Schema for a partial update of AI assistant defaults."""

    default_provider: Optional[AIProvider] = None
    default_model: Optional[str] = Field(None, min_length=1)
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_tokens: Optional[int] = Field(None, ge=1, le=8192)
    system_prompt: Optional[str] = None


class EnvStatusResponse(BaseModel):
    """Which process-level secrets are loaded (never their values)."""

    encryption_key: str = Field(..., description="'loaded' or 'missing'")
    fallback_keys: dict[str, str] = Field(..., description="Provider -> 'loaded' or 'missing'")

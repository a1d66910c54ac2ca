"""API schemas."""

from aitasky.models.schemas.chat import ChatMessage, ChatRequest, ChatResponse, SearchRequest
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

__all__ = [
    "AISettingsResponse",
    "AISettingsUpdate",
    "ApiKeyCreate",
    "ApiKeyListResponse",
    "ApiKeyStatus",
    "ApiKeyTest",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "EnvStatusResponse",
    "LLMModel",
    "LLMProviderInfo",
    "LLMProvidersResponse",
    "SearchRequest",
]

"""Provider catalogue, model routing and adapter selection."""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Optional

from aitasky.core.config import get_settings


class AIProvider(str, Enum):
    """Providers a user can store a key for."""

    OPENAI = "openai"
    GOOGLE = "google"
    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"
    KILO = "kilo"
    TAVILY = "tavily"


# Providers that serve chat completions (tavily is search only)
LLM_PROVIDERS = (
    AIProvider.OPENAI,
    AIProvider.GOOGLE,
    AIProvider.ANTHROPIC,
    AIProvider.OPENROUTER,
    AIProvider.KILO,
)

DEFAULT_PROVIDER = AIProvider.OPENROUTER


# Provider display names and API key environment variable mappings
PROVIDER_METADATA = {
    AIProvider.OPENAI: {"name": "OpenAI", "env_key": "OPENAI_API_KEY"},
    AIProvider.GOOGLE: {"name": "Google Gemini", "env_key": "GOOGLE_API_KEY"},
    AIProvider.ANTHROPIC: {"name": "Anthropic", "env_key": "ANTHROPIC_API_KEY"},
    AIProvider.OPENROUTER: {"name": "OpenRouter", "env_key": "OPENROUTER_API_KEY"},
    AIProvider.KILO: {"name": "Kilo", "env_key": "KILO_API_KEY"},
    AIProvider.TAVILY: {"name": "Tavily Search", "env_key": "TAVILY_API_KEY"},
}

# Friendly model names offered in the UI -> model id sent to the provider
MODEL_MAPPINGS: dict[AIProvider, dict[str, str]] = {
    AIProvider.GOOGLE: {
        "gemini-1.5-flash": "gemini-1.5-flash",
        "gemini-1.5-pro": "gemini-1.5-pro",
        "gemini-pro": "gemini-1.5-pro",
        "gemini-2.5-flash": "gemini-2.5-flash",
        "gemini-2.5-pro": "gemini-2.5-pro",
        "gemini-2.0-flash-exp": "gemini-2.0-flash-exp",
    },
    AIProvider.OPENAI: {
        "gpt-4.1": "gpt-4-turbo",
        "gpt-4o": "gpt-4o",
        "gpt-4o-mini": "gpt-4o-mini",
        "o3-mini": "o3-mini",
        "o1-mini": "o1-mini",
    },
    AIProvider.ANTHROPIC: {
        "claude-sonnet": "claude-3-5-sonnet-20241022",
        "claude-haiku": "claude-3-5-haiku-20241022",
    },
    AIProvider.OPENROUTER: {
        "deepseek-r1-free": "deepseek/deepseek-r1-0528:free",
        "deepseek-v3-free": "deepseek/deepseek-chat-v3-0324:free",
        "deepseek-r1": "deepseek/deepseek-r1",
        "deepseek-v3": "deepseek/deepseek-chat",
    },
    AIProvider.KILO: {
        "xai-grok-code-fast-1": "xai/grok-beta",
        "claude-sonnet-4": "anthropic/claude-3-5-sonnet-20241022",
    },
}

# Model id prefix -> provider, checked in order
MODEL_PREFIXES: tuple[tuple[str, AIProvider], ...] = (
    ("gpt", AIProvider.OPENAI),
    ("o1", AIProvider.OPENAI),
    ("o3", AIProvider.OPENAI),
    ("gemini", AIProvider.GOOGLE),
    ("claude", AIProvider.ANTHROPIC),
)


@dataclass(frozen=True)
class ProviderAdapter:
    """How a provider is reached through litellm."""

    provider: AIProvider
    litellm_prefix: Optional[str]
    base_url: Optional[str] = None

    def model_name(self, model: str) -> str:
        """Build the litellm model string for a provider model id."""
        if not self.litellm_prefix or model.startswith(f"{self.litellm_prefix}/"):
            return model
        return f"{self.litellm_prefix}/{model}"


@lru_cache(maxsize=1)
def get_adapters() -> dict[AIProvider, ProviderAdapter]:
    """Adapter table for all chat providers."""
    settings = get_settings()
    return {
        AIProvider.OPENAI: ProviderAdapter(AIProvider.OPENAI, None),
        AIProvider.GOOGLE: ProviderAdapter(AIProvider.GOOGLE, "gemini"),
        AIProvider.ANTHROPIC: ProviderAdapter(AIProvider.ANTHROPIC, "anthropic"),
        AIProvider.OPENROUTER: ProviderAdapter(
            AIProvider.OPENROUTER, "openrouter", settings.openrouter_base_url
        ),
        # OpenAI-compatible endpoint
        AIProvider.KILO: ProviderAdapter(AIProvider.KILO, "openai", settings.kilo_base_url),
    }


def parse_provider(provider: str) -> Optional[AIProvider]:
    """Return the AIProvider for a name, or None if it is not in the catalogue."""
    try:
        return AIProvider(str(getattr(provider, "value", provider)).lower())
    except ValueError:
        return None


def get_adapter(provider: str) -> ProviderAdapter:
    """
    Get the adapter for a provider.

    Unknown providers fall through to the default (OpenRouter) adapter.
    """
    adapters = get_adapters()
    parsed = parse_provider(provider)
    return adapters.get(parsed, adapters[DEFAULT_PROVIDER])


def is_llm_provider(provider: str) -> bool:
    return parse_provider(provider) in LLM_PROVIDERS


def provider_for_model(model_id: str) -> AIProvider:
    """
    Infer the provider serving a model id.

    Friendly names from MODEL_MAPPINGS win; otherwise known prefixes are matched and
    anything else goes to the default provider.
    """
    for provider, mapping in MODEL_MAPPINGS.items():
        if model_id in mapping:
            return provider

    model_lower = model_id.lower()
    for prefix, provider in MODEL_PREFIXES:
        if model_lower.startswith(prefix):
            return provider

    return DEFAULT_PROVIDER


def resolve_model_name(provider: str, model: str) -> str:
    """Map a friendly model name to the provider's actual model id."""
    parsed = parse_provider(provider)
    mapping = MODEL_MAPPINGS.get(parsed, {})
    return mapping.get(model, model)


def get_provider_models(provider: str) -> list[dict]:
    """
    Get the curated chat models for a provider.

    Args:
        provider: Provider identifier (e.g., 'openai', 'anthropic')

    Returns:
        List of model dicts with 'id' and 'name' keys
    """
    mapping = MODEL_MAPPINGS.get(parse_provider(provider), {})
    return [{"id": name, "name": name} for name in sorted(mapping)]


def get_available_providers(include_search: bool = True) -> list[dict]:
    """
    Get the provider catalogue.

    Args:
        include_search: Include search-only providers (tavily)

    Returns:
        List of provider dicts with id, name, models and env_key
    """
    providers = []
    for provider, metadata in PROVIDER_METADATA.items():
        if not include_search and provider not in LLM_PROVIDERS:
            continue
        providers.append(
            {
                "id": provider.value,
                "name": metadata["name"],
                "models": get_provider_models(provider),
                "env_key": metadata["env_key"],
            }
        )
    return providers


def get_default_model_for_provider(provider: str) -> Optional[str]:
    """
    Get a sensible default model for a provider.

    Args:
        provider: Provider identifier

    Returns:
        Default model ID or None if no models available
    """
    defaults = {
        AIProvider.OPENAI: "gpt-4o-mini",
        AIProvider.GOOGLE: "gemini-2.5-flash",
        AIProvider.ANTHROPIC: "claude-sonnet",
        AIProvider.OPENROUTER: "deepseek-v3-free",
        AIProvider.KILO: "xai-grok-code-fast-1",
    }

    parsed = parse_provider(provider)
    if parsed in defaults:
        return defaults[parsed]

    models = get_provider_models(provider)
    return models[0]["id"] if models else None


def get_test_model_for_provider(provider: str) -> str:
    """
    Get a cheap/fast model for testing API keys.

    Args:
        provider: Provider identifier

    Returns:
        Model ID suitable for testing
    """
    test_models = {
        AIProvider.OPENAI: "gpt-4o-mini",
        AIProvider.GOOGLE: "gemini-1.5-flash",
        AIProvider.ANTHROPIC: "claude-haiku",
        AIProvider.OPENROUTER: "deepseek-v3-free",
    }

    parsed = parse_provider(provider)
    return test_models.get(parsed, get_default_model_for_provider(provider) or "gpt-4o-mini")

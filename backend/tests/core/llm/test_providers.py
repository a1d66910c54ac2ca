"""Tests for provider catalogue and model routing."""

import pytest

from aitasky.core.llm.providers import (
    AIProvider,
    DEFAULT_PROVIDER,
    get_adapter,
    get_available_providers,
    get_default_model_for_provider,
    get_test_model_for_provider,
    is_llm_provider,
    parse_provider,
    provider_for_model,
    resolve_model_name,
)


@pytest.mark.unit
class TestProviderForModel:
    """Test cases for inferring a provider from a model id."""

    @pytest.mark.parametrize(
        "model,expected",
        [
            ("gpt-4o", AIProvider.OPENAI),
            ("o1-mini", AIProvider.OPENAI),
            ("o3-mini", AIProvider.OPENAI),
            ("gemini-2.5-flash", AIProvider.GOOGLE),
            ("claude-3-5-sonnet-20241022", AIProvider.ANTHROPIC),
            ("deepseek-r1-free", AIProvider.OPENROUTER),
            ("xai-grok-code-fast-1", AIProvider.KILO),
        ],
    )
    def test_known_models(self, model, expected):
        assert provider_for_model(model) == expected

    def test_unknown_model_goes_to_default(self):
        """Test that unrecognized models fall through to OpenRouter."""
        assert provider_for_model("meta-llama/llama-3-70b") == DEFAULT_PROVIDER
        assert DEFAULT_PROVIDER == AIProvider.OPENROUTER


@pytest.mark.unit
class TestAdapters:
    """Test cases for adapter lookup."""

    def test_each_llm_provider_has_adapter(self):
        for provider in AIProvider:
            if is_llm_provider(provider):
                assert get_adapter(provider).provider == provider

    def test_unknown_provider_falls_back(self):
        assert get_adapter("unknown").provider == AIProvider.OPENROUTER

    def test_tavily_is_not_llm(self):
        assert not is_llm_provider("tavily")
        assert is_llm_provider("openai")

    def test_parse_provider(self):
        assert parse_provider("OpenAI") == AIProvider.OPENAI
        assert parse_provider(AIProvider.KILO) == AIProvider.KILO
        assert parse_provider("nope") is None


@pytest.mark.unit
class TestModelNames:
    """Test cases for model name helpers."""

    def test_resolve_friendly_name(self):
        assert resolve_model_name("anthropic", "claude-sonnet") == "claude-3-5-sonnet-20241022"
        assert resolve_model_name("openai", "gpt-4.1") == "gpt-4-turbo"

    def test_resolve_passthrough(self):
        assert resolve_model_name("openai", "gpt-5") == "gpt-5"
        assert resolve_model_name("unknown", "x") == "x"

    def test_test_and_default_models(self):
        assert get_test_model_for_provider("anthropic") == "claude-haiku"
        assert get_default_model_for_provider("google") == "gemini-2.5-flash"
        assert get_test_model_for_provider("unknown") == "gpt-4o-mini"


@pytest.mark.unit
class TestAvailableProviders:
    """Test cases for the provider catalogue."""

    def test_all_providers_listed(self):
        ids = [p["id"] for p in get_available_providers()]

        assert ids == [p.value for p in AIProvider]

    def test_exclude_search(self):
        ids = [p["id"] for p in get_available_providers(include_search=False)]

        assert "tavily" not in ids
        assert "openai" in ids

    def test_entries_have_models_and_env_key(self):
        google = next(p for p in get_available_providers() if p["id"] == "google")

        assert google["env_key"] == "GOOGLE_API_KEY"
        assert {"id": "gemini-2.5-flash", "name": "gemini-2.5-flash"} in google["models"]

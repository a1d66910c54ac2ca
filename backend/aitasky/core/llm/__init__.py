"""LLM integration module."""

from aitasky.core.llm.provider import LLMProvider, create_llm_provider, create_llm_provider_for_user

__all__ = ["LLMProvider", "create_llm_provider", "create_llm_provider_for_user"]

"""LiteLLM-backed chat completion adapter."""

import logging
from typing import Any, AsyncIterator, Optional

from litellm import acompletion

from aitasky.core.exceptions import ExternalServiceError, UnsupportedProviderError
from aitasky.core.llm.providers import (
    get_adapter,
    is_llm_provider,
    parse_provider,
    resolve_model_name,
)
from aitasky.core.security.resolver import ProviderResolver

logger = logging.getLogger(__name__)


class LLMProvider:
    """Chat completion client for one provider, model and API key."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        **config: Any,
    ):
        self.provider = str(getattr(provider, "value", provider)).lower()
        self.model = model
        self.api_key = api_key
        self.adapter = get_adapter(self.provider)
        self.base_url = base_url or self.adapter.base_url
        self.config = config

    def __repr__(self) -> str:
        return f"LLMProvider(provider={self.provider!r}, model={self.model!r})"

    def _build_model_name(self) -> str:
        """Build the litellm model string, e.g. 'anthropic/claude-3-5-haiku-20241022'."""
        return self.adapter.model_name(resolve_model_name(self.provider, self.model))

    def _request_kwargs(self, messages: list[dict], stream: bool) -> dict:
        kwargs = {
            "model": self._build_model_name(),
            "messages": messages,
            "stream": stream,
            **self.config,
        }
        # Key is passed per request and never exported to the process environment
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.base_url:
            kwargs["api_base"] = self.base_url
        return kwargs

    async def generate(self, messages: list[dict], stream: bool = False) -> Any:
        """
        Request a completion.

        Args:
            messages: Chat messages in OpenAI format
            stream: Return litellm's async stream instead of a full response

        Returns:
            litellm response object (or stream wrapper when stream=True)
        """
        try:
            return await acompletion(**self._request_kwargs(messages, stream))
        except Exception as e:
            logger.warning("LLM generation failed (provider=%s, model=%s)", self.provider, self.model)
            raise ExternalServiceError(
                f"LLM generation failed: {type(e).__name__}",
                service_name=self.provider,
                model=self.model,
            ) from e

    async def generate_text(self, messages: list[dict]) -> str:
        """Request a completion and return the message text."""
        response = await self.generate(messages, stream=False)
        return response.choices[0].message.content or ""

    async def generate_stream(self, messages: list[dict]) -> AsyncIterator[str]:
        """
        Stream completion text.

        Yields:
            Non-empty content deltas
        """
        response = await self.generate(messages, stream=True)
        async for content in self.iter_stream(response):
            yield content

    async def iter_stream(self, response: Any) -> AsyncIterator[str]:
        """
        Yield text from a stream already opened with `generate(..., stream=True)`.

        Raises:
            ExternalServiceError: If the stream fails part way through
        """
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                content = getattr(chunk.choices[0].delta, "content", None)
                if content:
                    yield content
        except Exception as e:
            raise ExternalServiceError(
                f"LLM stream interrupted: {type(e).__name__}",
                service_name=self.provider,
                model=self.model,
            ) from e


def create_llm_provider(
    provider: str,
    model: str,
    llm_config: Optional[dict] = None,
    api_key: Optional[str] = None,
) -> LLMProvider:
    """
    Create an LLM provider.

    Args:
        provider: Provider name
        model: Model id or friendly model name
        llm_config: Extra completion parameters (temperature, max_tokens, ...)
        api_key: Resolved API key

    Returns:
        Configured LLMProvider
    """
    if not is_llm_provider(provider) and parse_provider(provider) is not None:
        raise UnsupportedProviderError(str(getattr(provider, "value", provider)))

    return LLMProvider(provider=provider, model=model, api_key=api_key, **(llm_config or {}))


async def create_llm_provider_for_user(
    user_id: Optional[str],
    provider: str,
    model: str,
    resolver: ProviderResolver,
    llm_config: Optional[dict] = None,
) -> LLMProvider:
    """
    Create an LLM provider using the key the resolver selects for this user.

    Raises:
        MissingCredentialError: If neither a personal nor a fallback key exists
        IntegrityError: If the user's stored key fails validation
    """
    if not is_llm_provider(provider) and parse_provider(provider) is not None:
        raise UnsupportedProviderError(str(getattr(provider, "value", provider)))

    api_key = await resolver.require_api_key(user_id, provider)
    return create_llm_provider(provider, model, llm_config=llm_config, api_key=api_key)

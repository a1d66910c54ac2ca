"""Chat API routes."""

import logging
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from aitasky.api.dependencies import get_current_user_id, get_provider_resolver
from aitasky.api.errors import to_http_exception
from aitasky.core.exceptions import AITaskyError, ExternalServiceError
from aitasky.core.llm.provider import LLMProvider, create_llm_provider_for_user
from aitasky.core.llm.providers import AIProvider, provider_for_model
from aitasky.core.search.tavily import TavilyResponse, TavilySearch, format_search_context
from aitasky.core.security.resolver import ProviderResolver
from aitasky.core.storage.database import get_db
from aitasky.models.schemas.chat import ChatMessage, ChatRequest, ChatResponse, SearchRequest
from aitasky.services.ai_settings import get_or_create_ai_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


IMAGE_ONLY_PROMPT = "Please describe in detail everything you see in these images."


def _image_url(image: str) -> str:
    """Accept http(s) URLs and data URLs as-is; treat anything else as bare base64 JPEG."""
    if image.startswith(("http://", "https://", "data:")):
        return image
    return f"data:image/jpeg;base64,{image}"


def _message_images(message: ChatMessage) -> list[str]:
    if message.images:
        return list(message.images)
    return [message.image] if message.image else []


def build_messages(request: ChatRequest, system_prompt: Optional[str]) -> list[dict]:
    """
    Build provider messages.

    Images come from each message (`image` or `images`) plus the request-level
    `image`, which belongs to the last user message. Messages with neither text
    nor images are dropped.
    """
    last_user = max(
        (index for index, message in enumerate(request.messages) if message.role == "user"),
        default=None,
    )

    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})

    for index, message in enumerate(request.messages):
        images = _message_images(message)
        if request.image and index == last_user:
            images.append(request.image)

        text = message.content.strip()
        if not text and not images:
            continue

        if not images:
            messages.append({"role": message.role, "content": message.content})
            continue

        content = [{"type": "text", "text": message.content if text else IMAGE_ONLY_PROMPT}]
        content.extend({"type": "image_url", "image_url": {"url": _image_url(image)}} for image in images)
        messages.append({"role": message.role, "content": content})

    return messages


def last_user_text(request: ChatRequest) -> Optional[str]:
    """Text of the most recent user message, used as the web search query."""
    for message in reversed(request.messages):
        if message.role == "user" and message.content.strip():
            return message.content
    return None


async def search_for_context(
    resolver: ProviderResolver, user_id: str, query: str
) -> Optional[TavilyResponse]:
    """Run a web search for chat augmentation. Returns None when search is unavailable."""
    resolved = await resolver.resolve_api_key(user_id, AIProvider.TAVILY)
    if not resolved.found:
        logger.info("Web search requested but no Tavily key available (user=%s)", user_id)
        return None

    try:
        return await TavilySearch(api_key=resolved.key).search(query)
    except ExternalServiceError:
        logger.warning("Web search failed, continuing without results (user=%s)", user_id)
        return None


async def _stream_text(provider: LLMProvider, stream: Any) -> AsyncIterator[str]:
    try:
        async for chunk in provider.iter_stream(stream):
            yield chunk
    except ExternalServiceError:
        # Headers are already sent; end the stream
        logger.warning("Chat stream ended early (provider=%s)", provider.provider)


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    resolver: ProviderResolver = Depends(get_provider_resolver),
    db: AsyncSession = Depends(get_db),
):
    """
    Generate a chat completion with the caller's key for the provider.

    The key is the user's stored key, else the house key; without either the
    request is rejected. Streams plain text chunks when `stream` is true.
    """
    provider_name = (request.provider or provider_for_model(request.model)).value
    ai_settings = await get_or_create_ai_settings(db, user_id)

    llm_config = {
        "temperature": request.temperature if request.temperature is not None else ai_settings.temperature,
        "max_tokens": request.max_tokens if request.max_tokens is not None else ai_settings.max_tokens,
    }

    try:
        provider = await create_llm_provider_for_user(
            user_id, provider_name, request.model, resolver, llm_config=llm_config
        )

        system_prompt = request.system_prompt or ai_settings.system_prompt
        if request.web_search:
            query = last_user_text(request)
            search_response = await search_for_context(resolver, user_id, query) if query else None
            if search_response is not None:
                system_prompt = f"{system_prompt}\n\n{format_search_context(search_response)}"

        messages = build_messages(request, system_prompt)

        if request.stream:
            # Opened before the response starts; failures here map to a status code
            stream = await provider.generate(messages, stream=True)
            return StreamingResponse(
                _stream_text(provider, stream), media_type="text/plain; charset=utf-8"
            )

        content = await provider.generate_text(messages)
    except AITaskyError as e:
        raise to_http_exception(e) from e

    return ChatResponse(content=content, provider=provider_name, model=request.model)


@router.post("/search")
async def web_search(
    request: SearchRequest,
    user_id: str = Depends(get_current_user_id),
    resolver: ProviderResolver = Depends(get_provider_resolver),
):
    """Run a Tavily web search with the caller's (or the house) Tavily key."""
    try:
        api_key = await resolver.require_api_key(user_id, AIProvider.TAVILY)
        response = await TavilySearch(api_key=api_key).search(
            request.query, max_results=request.max_results
        )
    except AITaskyError as e:
        raise to_http_exception(e) from e

    return response.model_dump()

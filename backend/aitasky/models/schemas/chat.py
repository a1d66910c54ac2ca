"""Chat API schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from aitasky.core.llm.providers import AIProvider


class ChatMessage(BaseModel):
    """A single chat message."""

    role: Literal["system", "user", "assistant"]
    content: str = ""
    image: Optional[str] = Field(None, description="Image URL, data URL or base64 data")
    images: list[str] = Field(default_factory=list, description="Several images; wins over `image`")


class ChatRequest(BaseModel):
    """Schema for a chat completion request."""

    model: str = Field(..., min_length=1, description="Model id or friendly model name")
    provider: Optional[AIProvider] = Field(
        None, description="Provider; inferred from the model when omitted"
    )
    messages: list[ChatMessage] = Field(..., min_length=1)
    image: Optional[str] = Field(
        None, description="Image attached to the last user message"
    )
    stream: bool = True
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_tokens: Optional[int] = Field(None, ge=1, le=8192)
    system_prompt: Optional[str] = None
    web_search: bool = Field(False, description="Augment the prompt with Tavily results")


class ChatResponse(BaseModel):
    """Schema for a non-streaming chat completion."""

    content: str
    provider: str
    model: str


class SearchRequest(BaseModel):
    """Schema for a web search request."""

    query: str = Field(..., min_length=1)
    max_results: int = Field(5, ge=1, le=20)

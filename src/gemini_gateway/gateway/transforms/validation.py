"""Pydantic models for OpenAI request validation.

These models validate incoming chat completion and embedding requests before
any translation happens. Unknown fields are accepted and ignored so that
clients sending newer OpenAI parameters are not rejected.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator


class ImageURL(BaseModel):
    """Image reference inside an ``image_url`` content part."""

    model_config = ConfigDict(extra="allow")

    url: str
    detail: str | None = None


class ContentPart(BaseModel):
    """One part of a multi-part message.

    ``type`` is left open here; parts Gemini cannot represent are rejected
    by the request translator with the offending message index.
    """

    model_config = ConfigDict(extra="allow")

    type: Literal["text", "image_url"] | str
    text: str | None = None
    image_url: ImageURL | None = None


class ChatMessage(BaseModel):
    """A message in the conversation."""

    model_config = ConfigDict(extra="allow")

    role: Literal["system", "user", "assistant"]
    content: str | list[ContentPart] | None = None
    name: str | None = None


class StreamOptions(BaseModel):
    model_config = ConfigDict(extra="allow")

    include_usage: bool = False


class ResponseFormat(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "text"


class ChatCompletionRequest(BaseModel):
    """OpenAI Chat Completions request body."""

    model_config = ConfigDict(extra="allow")

    model: str
    messages: list[ChatMessage]
    stream: bool = False
    stream_options: StreamOptions | None = None

    # Sampling parameters, forwarded without range checks
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    max_completion_tokens: int | None = None
    stop: str | list[str] | None = None
    n: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None
    response_format: ResponseFormat | None = None
    user: str | None = None

    @field_validator("messages")
    @classmethod
    def validate_messages(cls, v: list[ChatMessage]) -> list[ChatMessage]:
        """Validate messages list is not empty."""
        if not v:
            raise ValueError("messages list cannot be empty")
        return v

    @property
    def include_usage(self) -> bool:
        return bool(self.stream_options and self.stream_options.include_usage)


class EmbeddingRequest(BaseModel):
    """OpenAI Embeddings request body."""

    model_config = ConfigDict(extra="allow")

    model: str
    input: str | list[str]
    dimensions: int | None = None
    encoding_format: Literal["float"] | None = None
    user: str | None = None

    @field_validator("input")
    @classmethod
    def validate_input(cls, v: str | list[str]) -> str | list[str]:
        """Validate there is at least one input."""
        if isinstance(v, list) and not v:
            raise ValueError("input list cannot be empty")
        return v

    @property
    def inputs(self) -> list[str]:
        return [self.input] if isinstance(self.input, str) else list(self.input)


def _format_errors(error: ValidationError) -> list[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        messages.append(f"{location}: {item['msg']}" if location else item["msg"])
    return messages


def parse_chat_request(body: Any) -> tuple[ChatCompletionRequest | None, list[str]]:
    """Validate a chat completion body.

    Returns:
        The parsed request (or None) and a list of validation messages
        (empty if valid).
    """
    try:
        return ChatCompletionRequest.model_validate(body), []
    except ValidationError as e:
        return None, _format_errors(e)


def parse_embedding_request(body: Any) -> tuple[EmbeddingRequest | None, list[str]]:
    """Validate an embeddings body, same contract as ``parse_chat_request``."""
    try:
        return EmbeddingRequest.model_validate(body), []
    except ValidationError as e:
        return None, _format_errors(e)

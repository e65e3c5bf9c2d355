"""OpenAI request → Gemini request translation.

Role mapping:
- system    → systemInstruction (never folded into a user turn)
- user      → "user"
- assistant → "model"

System messages are only accepted before the first user/assistant message;
anywhere else their position in Gemini's turn structure would be ambiguous.
Adjacent turns with the same role are merged when the request body is built,
keeping part order, because Gemini expects user/model turns to alternate.
"""

import mimetypes
import re
from collections.abc import Sequence

from gemini_gateway.gateway.errors import InvalidRequest, UnsupportedContent
from gemini_gateway.gateway.models import supports_dimensions

from .types import (
    HARM_CATEGORIES,
    Content,
    EmbedContentRequest,
    GeminiRole,
    GenerateContentRequest,
    GenerationConfig,
    Part,
    SafetySetting,
)
from .validation import ChatCompletionRequest, ChatMessage, ContentPart, EmbeddingRequest

ROLE_MAP: dict[str, GeminiRole] = {
    "system": "system",
    "user": "user",
    "assistant": "model",
}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^,;]*)*?);base64,(?P<data>.*)$", re.S)


def translate_chat(request: ChatCompletionRequest) -> list[Content]:
    """Map each OpenAI message to one Gemini Content, in order.

    Raises:
        InvalidRequest: empty conversation, empty message, misplaced or
            system-only messages.
        UnsupportedContent: a content part Gemini cannot represent.
    """
    if not request.messages:
        raise InvalidRequest("messages list cannot be empty")

    contents: list[Content] = []
    seen_turn = False
    for index, message in enumerate(request.messages):
        role = ROLE_MAP[message.role]
        if role == "system" and seen_turn:
            raise InvalidRequest(
                f"messages[{index}]: system messages must come before user and assistant messages"
            )
        if role != "system":
            seen_turn = True
        contents.append(Content(role=role, parts=_translate_parts(message, index)))

    if not seen_turn:
        raise InvalidRequest("messages must contain at least one user or assistant message")
    return contents


def _translate_parts(message: ChatMessage, index: int) -> tuple[Part, ...]:
    content = message.content
    if content is None or content == "" or content == []:
        raise InvalidRequest(f"messages[{index}]: content cannot be empty")
    if isinstance(content, str):
        return (Part.from_text(content),)
    return tuple(_translate_part(part, index) for part in content)


def _translate_part(part: ContentPart, index: int) -> Part:
    if part.type == "text":
        return Part.from_text(part.text or "")
    if part.type == "image_url" and part.image_url:
        return _image_part(part.image_url.url, index)
    raise UnsupportedContent(
        f"messages[{index}]: content part type '{part.type}' is not supported",
        message_index=index,
    )


def _image_part(url: str, index: int) -> Part:
    """Inline data URLs as bytes; pass remote URLs as file references."""
    match = _DATA_URL_RE.match(url)
    if match:
        if not match.group("mime"):
            raise UnsupportedContent(f"messages[{index}]: image data URL has no mime type", message_index=index)
        return Part(type="inline_data", mime_type=match.group("mime"), data=match.group("data"))

    if url.startswith(("http://", "https://", "gs://")):
        mime_type, _ = mimetypes.guess_type(url.split("?", 1)[0])
        if not mime_type:
            raise UnsupportedContent(
                f"messages[{index}]: cannot determine the image type of {url}",
                message_index=index,
            )
        return Part(type="file_data", mime_type=mime_type, file_uri=url)

    raise UnsupportedContent(f"messages[{index}]: unsupported image URL scheme", message_index=index)


def merge_turns(contents: Sequence[Content]) -> list[Content]:
    """Merge adjacent same-role contents by concatenating their parts."""
    merged: list[Content] = []
    for content in contents:
        if merged and merged[-1].role == content.role:
            merged[-1] = Content(role=content.role, parts=merged[-1].parts + content.parts)
        else:
            merged.append(content)
    return merged


def build_generation_config(request: ChatCompletionRequest) -> GenerationConfig:
    """Map sampling parameters by name. Range checks are left to Gemini."""
    stop: tuple[str, ...] | None = None
    if isinstance(request.stop, str):
        stop = (request.stop,)
    elif request.stop:
        stop = tuple(request.stop)

    response_mime_type = None
    if request.response_format and request.response_format.type == "json_object":
        response_mime_type = "application/json"

    max_tokens = request.max_completion_tokens
    if max_tokens is None:
        max_tokens = request.max_tokens

    return GenerationConfig(
        temperature=request.temperature,
        top_p=request.top_p,
        max_output_tokens=max_tokens,
        stop_sequences=stop,
        candidate_count=request.n,
        presence_penalty=request.presence_penalty,
        frequency_penalty=request.frequency_penalty,
        seed=request.seed,
        response_mime_type=response_mime_type,
    )


def build_generate_request(
    request: ChatCompletionRequest,
    contents: Sequence[Content] | None = None,
) -> GenerateContentRequest:
    """Assemble the generateContent body for a chat request."""
    if contents is None:
        contents = translate_chat(request)

    system_parts: tuple[Part, ...] = ()
    turns: list[Content] = []
    for content in contents:
        if content.role == "system":
            system_parts += content.parts
        else:
            turns.append(content)

    return GenerateContentRequest(
        contents=tuple(merge_turns(turns)),
        system_instruction=Content(role="system", parts=system_parts) if system_parts else None,
        generation_config=build_generation_config(request),
        safety_settings=tuple(SafetySetting(category=c) for c in HARM_CATEGORIES),
    )


def translate_embedding(request: EmbeddingRequest) -> list[Content]:
    """One single-text Content per input, order preserved."""
    inputs = request.inputs
    if not inputs:
        raise InvalidRequest("input cannot be empty")
    return [Content(role="user", parts=(Part.from_text(text),)) for text in inputs]


def build_embed_requests(
    request: EmbeddingRequest,
    upstream_model: str,
    contents: Sequence[Content] | None = None,
) -> list[EmbedContentRequest]:
    """Build batchEmbedContents entries.

    The dimension hint is only forwarded to models that accept it; for
    other models it is dropped without error.
    """
    if contents is None:
        contents = translate_embedding(request)
    dimensions = request.dimensions if supports_dimensions(upstream_model) else None
    return [
        EmbedContentRequest(model=upstream_model, content=content, output_dimensionality=dimensions)
        for content in contents
    ]

"""Gemini response → OpenAI response translation."""

import time
import uuid
from collections.abc import Sequence

from gemini_gateway.gateway.errors import EmptyUpstreamResponse

from .types import (
    Choice,
    CompletionResponse,
    EmbeddingResponse,
    GenerateContentResponse,
    Usage,
    UsageMetadata,
)

# Gemini finishReason → OpenAI finish_reason. Anything not listed maps to "stop".
FINISH_REASON_MAP = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
    "BLOCKLIST": "content_filter",
    "PROHIBITED_CONTENT": "content_filter",
    "SPII": "content_filter",
}
DEFAULT_FINISH_REASON = "stop"


def map_finish_reason(reason: str | None) -> str:
    """Translate a Gemini finish reason using the fixed table."""
    if reason is None:
        return DEFAULT_FINISH_REASON
    return FINISH_REASON_MAP.get(reason, DEFAULT_FINISH_REASON)


def map_usage(metadata: UsageMetadata | None) -> Usage:
    """Copy token counts field for field; absent counts are zero."""
    if metadata is None:
        return Usage()
    return Usage(
        prompt_tokens=metadata.prompt_token_count,
        completion_tokens=metadata.candidates_token_count,
        total_tokens=metadata.total_token_count,
    )


def new_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex}"


def translate_completion(
    response: GenerateContentResponse,
    request_model: str,
    completion_id: str | None = None,
    created: int | None = None,
) -> CompletionResponse:
    """Build an OpenAI completion with one choice per Gemini candidate.

    Raises:
        EmptyUpstreamResponse: Gemini returned no candidates.
    """
    if not response.candidates:
        detail = f" (prompt blocked: {response.block_reason})" if response.block_reason else ""
        raise EmptyUpstreamResponse(f"upstream returned no candidates{detail}")

    choices = tuple(
        Choice(
            index=position,
            content=candidate.text,
            finish_reason=map_finish_reason(candidate.finish_reason),
        )
        for position, candidate in enumerate(response.candidates)
    )
    return CompletionResponse(
        id=completion_id or new_completion_id(),
        created=created if created is not None else int(time.time()),
        model=request_model,
        choices=choices,
        usage=map_usage(response.usage_metadata),
    )


def translate_embedding_response(
    values: Sequence[Sequence[float]],
    request_model: str,
    input_count: int,
) -> EmbeddingResponse:
    """Map upstream vectors one to one, in input order.

    Gemini reports no token counts for embeddings, so usage is zero.

    Raises:
        EmptyUpstreamResponse: vector count differs from the input count.
    """
    if len(values) != input_count:
        raise EmptyUpstreamResponse(
            f"upstream returned {len(values)} embeddings for {input_count} inputs"
        )
    return EmbeddingResponse(
        model=request_model,
        embeddings=tuple(tuple(vector) for vector in values),
        usage=Usage(),
    )

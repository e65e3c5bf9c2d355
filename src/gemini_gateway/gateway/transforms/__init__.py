"""Schema translation between the OpenAI and Gemini APIs.

- request:    OpenAI chat/embedding requests → Gemini contents and bodies
- response:   Gemini responses → OpenAI completion/embedding objects
- stream:     Gemini partial responses → OpenAI SSE chunks
- validation: pydantic models for inbound OpenAI requests
- types:      wire structures for both sides
"""

from .request import (
    build_embed_requests,
    build_generate_request,
    build_generation_config,
    merge_turns,
    translate_chat,
    translate_embedding,
)
from .response import (
    FINISH_REASON_MAP,
    map_finish_reason,
    translate_completion,
    translate_embedding_response,
)
from .stream import SSE_DONE, StreamBridge, format_sse
from .types import (
    Candidate,
    CompletionChunk,
    CompletionResponse,
    Content,
    EmbeddingResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    Usage,
    UsageMetadata,
)
from .validation import ChatCompletionRequest, EmbeddingRequest

__all__ = [
    # Request side
    "build_embed_requests",
    "build_generate_request",
    "build_generation_config",
    "merge_turns",
    "translate_chat",
    "translate_embedding",
    # Response side
    "FINISH_REASON_MAP",
    "map_finish_reason",
    "translate_completion",
    "translate_embedding_response",
    # Streaming
    "SSE_DONE",
    "StreamBridge",
    "format_sse",
    # Types
    "Candidate",
    "CompletionChunk",
    "CompletionResponse",
    "Content",
    "EmbeddingResponse",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GenerationConfig",
    "Part",
    "Usage",
    "UsageMetadata",
    # Validation
    "ChatCompletionRequest",
    "EmbeddingRequest",
]

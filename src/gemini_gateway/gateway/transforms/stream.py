"""Gemini stream → OpenAI server-sent-events bridge.

Each partial Gemini response becomes exactly one ``chat.completion.chunk``
frame carrying only that item's new text. A clean upstream end is followed by
a single ``data: [DONE]`` frame; with ``include_usage`` it is preceded by one
more chunk with empty ``choices`` carrying the token usage, as OpenAI does.
An upstream error ends the stream without
the sentinel and propagates to the consumer, which is how a truncated stream
is told apart from a finished one.

The bridge is a pull-based async generator: the next upstream item is only
read when the consumer asks for the next frame, so at most one item is in
flight and a slow client slows the upstream read. Closing the generator
(client disconnect, cancellation) closes the upstream iterator without
draining it.
"""

import json
import logging
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from gemini_gateway.gateway.errors import EmptyUpstreamResponse

from .response import map_finish_reason, map_usage, new_completion_id
from .types import ChunkChoice, CompletionChunk, GenerateContentResponse, UsageMetadata

logger = logging.getLogger(__name__)

SSE_DONE = "data: [DONE]\n\n"


def format_sse(payload: dict[str, Any]) -> str:
    """Frame a JSON payload as one SSE data event."""
    return f"data: {json.dumps(payload, separators=(',', ':'), ensure_ascii=False)}\n\n"


@dataclass
class StreamBridge:
    """Re-frames one upstream stream. Create one per request."""

    request_model: str
    include_usage: bool = False
    completion_id: str = field(default_factory=new_completion_id)
    created: int = field(default_factory=lambda: int(time.time()))
    chunks_sent: int = 0
    last_usage: UsageMetadata | None = None

    def to_chunk(self, item: GenerateContentResponse) -> CompletionChunk:
        """Convert one partial upstream response to a chunk."""
        if not item.candidates and item.block_reason:
            raise EmptyUpstreamResponse(f"upstream returned no candidates (prompt blocked: {item.block_reason})")

        role = "assistant" if self.chunks_sent == 0 else None
        choices = tuple(
            ChunkChoice(
                index=candidate.index,
                content=candidate.text,
                role=role,
                finish_reason=map_finish_reason(candidate.finish_reason) if candidate.finish_reason else None,
            )
            for candidate in item.candidates
        )

        if item.usage_metadata is not None:
            self.last_usage = item.usage_metadata

        return CompletionChunk(
            id=self.completion_id,
            created=self.created,
            model=self.request_model,
            choices=choices,
        )

    def usage_chunk(self) -> CompletionChunk:
        """Final chunk with no choices and the last usage Gemini reported."""
        return CompletionChunk(
            id=self.completion_id,
            created=self.created,
            model=self.request_model,
            choices=(),
            usage=map_usage(self.last_usage),
        )

    async def bridge(self, items: AsyncIterator[GenerateContentResponse]) -> AsyncIterator[str]:
        """Yield SSE frames for ``items``, then the ``[DONE]`` sentinel."""
        try:
            async for item in items:
                frame = format_sse(self.to_chunk(item).to_dict())
                self.chunks_sent += 1
                yield frame
        finally:
            aclose = getattr(items, "aclose", None)
            if aclose is not None:
                await aclose()
        logger.debug("Stream %s complete after %d chunks", self.completion_id, self.chunks_sent)
        if self.include_usage:
            yield format_sse(self.usage_chunk().to_dict())
        yield SSE_DONE

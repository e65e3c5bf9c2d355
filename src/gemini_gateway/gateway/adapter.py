"""Gemini adapter: the single entry point used by the HTTP layer.

Each operation resolves the model, translates the request (so client errors
are raised before anything is sent), opens a Gemini client bound to the
caller's API key, makes exactly one upstream call and translates the result.
The client is closed when the operation finishes, including on error; for
streams, when the returned iterator finishes or is closed.
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass, field

from gemini_gateway.gateway.clients.gemini_client import GeminiClient, GeminiClientConfig
from gemini_gateway.gateway.errors import InvalidRequest
from gemini_gateway.gateway.models import Capability, ModelMapper, ModelRoute
from gemini_gateway.gateway.transforms.request import (
    build_embed_requests,
    build_generate_request,
    translate_chat,
    translate_embedding,
)
from gemini_gateway.gateway.transforms.response import (
    translate_completion,
    translate_embedding_response,
)
from gemini_gateway.gateway.transforms.stream import StreamBridge
from gemini_gateway.gateway.transforms.types import CompletionResponse, EmbeddingResponse
from gemini_gateway.gateway.transforms.validation import ChatCompletionRequest, EmbeddingRequest

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], GeminiClient]


def default_client_factory(config: GeminiClientConfig | None = None) -> ClientFactory:
    """Factory creating one GeminiClient per API key."""
    client_config = config or GeminiClientConfig()

    def factory(api_key: str) -> GeminiClient:
        return GeminiClient(api_key=api_key, config=client_config)

    return factory


@dataclass
class GeminiAdapter:
    """Translate OpenAI requests, call Gemini once, translate back.

    Example:
        >>> adapter = GeminiAdapter(mapper=ModelMapper.build())
        >>> completion = await adapter.complete(request, api_key="...")
        >>> completion.to_dict()["choices"][0]["message"]["content"]
    """

    mapper: ModelMapper = field(default_factory=ModelMapper)
    client_factory: ClientFactory = field(default_factory=default_client_factory)

    def resolve(self, model: str, capability: Capability) -> ModelRoute:
        """Resolve ``model`` and check it can serve ``capability``."""
        route = self.mapper.resolve(model)
        if route.capability != capability:
            raise InvalidRequest(
                f"model '{model}' ({route.upstream}) does not support {capability} requests"
            )
        return route

    async def complete(
        self,
        request: ChatCompletionRequest,
        api_key: str,
        trace_id: str = "-",
    ) -> CompletionResponse:
        """Non-streamed chat completion."""
        route = self.resolve(request.model, "chat")
        body = build_generate_request(request, translate_chat(request))
        logger.debug("[%s] generateContent -> %s", trace_id, route.upstream)

        async with self.client_factory(api_key) as client:
            response = await client.generate_content(route.upstream, body, trace_id)

        return translate_completion(response, request.model)

    async def complete_stream(
        self,
        request: ChatCompletionRequest,
        api_key: str,
        trace_id: str = "-",
    ) -> AsyncIterator[str]:
        """Streamed chat completion.

        Translation errors and an upstream rejection of the call itself are
        raised here. Errors after the first frame are raised by the iterator.

        Returns:
            The stream bridge's SSE frames, ending with ``data: [DONE]`` on
            a clean upstream end
        """
        route = self.resolve(request.model, "chat")
        body = build_generate_request(request, translate_chat(request))
        bridge = StreamBridge(request_model=request.model, include_usage=request.include_usage)
        logger.debug("[%s] streamGenerateContent -> %s", trace_id, route.upstream)

        stack = AsyncExitStack()
        try:
            client = await stack.enter_async_context(self.client_factory(api_key))
            items = await client.stream_generate_content(route.upstream, body, trace_id)
        except BaseException:
            await stack.aclose()
            raise

        return self._owned(bridge.bridge(items), stack)

    async def _owned(self, frames: AsyncIterator[str], stack: AsyncExitStack) -> AsyncIterator[str]:
        """Pass frames through unchanged and close the client when done."""
        try:
            async for frame in frames:
                yield frame
        finally:
            try:
                await frames.aclose()  # type: ignore[attr-defined]
            finally:
                await stack.aclose()

    async def embed(
        self,
        request: EmbeddingRequest,
        api_key: str,
        trace_id: str = "-",
    ) -> EmbeddingResponse:
        """Embed every input with one batch call."""
        route = self.resolve(request.model, "embedding")
        contents = translate_embedding(request)
        embed_requests = build_embed_requests(request, route.upstream, contents)
        logger.debug("[%s] batchEmbedContents -> %s (%d inputs)", trace_id, route.upstream, len(contents))

        async with self.client_factory(api_key) as client:
            values = await client.batch_embed_contents(route.upstream, embed_requests, trace_id)

        return translate_embedding_response(values, request.model, len(contents))

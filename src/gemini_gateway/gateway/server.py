"""OpenAI-compatible gateway server.

Exposes the OpenAI endpoints and fulfils them with the Gemini API:

    GET  /                    welcome message (421, as api.openai.com does)
    GET  /health              health check
    GET  /v1/models           static model catalog
    GET  /v1/models/{model}   model card for any id
    POST /v1/chat/completions chat completion, JSON or SSE stream
    POST /v1/embeddings       embeddings

The caller's ``Authorization: Bearer <key>`` is used as the Gemini API key.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aiohttp import web

from gemini_gateway.gateway.adapter import GeminiAdapter, default_client_factory
from gemini_gateway.gateway.clients.gemini_client import DEFAULT_BASE_URL, GeminiClientConfig
from gemini_gateway.gateway.errors import (
    GatewayError,
    InternalError,
    InvalidRequest,
    MissingCredential,
    status_for,
)
from gemini_gateway.gateway.models import ModelMapper, model_card
from gemini_gateway.gateway.tracing import RequestTracer
from gemini_gateway.gateway.transforms.validation import parse_chat_request, parse_embedding_request

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Welcome to the OpenAI API! Documentation is available at "
    "https://platform.openai.com/docs/api-reference"
)

EVENT_STREAM_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@dataclass
class GatewayConfig:
    """Configuration for the gateway server."""

    host: str = "127.0.0.1"
    port: int = 8080

    # Upstream configuration
    upstream_base_url: str = DEFAULT_BASE_URL
    upstream_api_key: str = ""  # used only when a request carries no bearer token

    # Client configuration
    connect_timeout: float = 10.0
    read_timeout: float = 300.0

    # Model mapping
    disable_model_mapping: bool = False
    model_aliases: dict[str, str] = field(default_factory=dict)

    # Request limits
    max_body_size: int = 20 * 1024 * 1024  # 20MB, room for inline images

    # Debug: save raw requests/responses to files
    debug_dir: str | None = None  # e.g., "/tmp/gemini-gateway-debug"


@dataclass
class GatewayServer:
    """aiohttp server exposing the OpenAI API on top of Gemini.

    Example:
        >>> server = GatewayServer(config=GatewayConfig(port=8080))
        >>> await server.serve()
    """

    config: GatewayConfig
    adapter: GeminiAdapter | None = None
    _app: Any = None  # aiohttp.web.Application
    _runner: Any = None  # aiohttp.web.AppRunner
    _shutdown_event: asyncio.Event = field(default_factory=asyncio.Event)
    _tracer: RequestTracer = field(init=False)
    _adapter: GeminiAdapter = field(init=False)

    def __post_init__(self) -> None:
        """Build the tracer and, unless injected, the adapter."""
        self._tracer = RequestTracer(debug_dir=self.config.debug_dir)
        self._adapter = self.adapter or GeminiAdapter(
            mapper=ModelMapper.build(
                self.config.model_aliases,
                enabled=not self.config.disable_model_mapping,
            ),
            client_factory=default_client_factory(
                GeminiClientConfig(
                    base_url=self.config.upstream_base_url,
                    connect_timeout=self.config.connect_timeout,
                    read_timeout=self.config.read_timeout,
                )
            ),
        )

    def build_app(self) -> web.Application:
        """Create the aiohttp application with all routes."""
        from aiohttp import web

        app = web.Application(client_max_size=self.config.max_body_size)
        app.router.add_get("/", self._handle_index)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/v1/models", self._handle_models)
        app.router.add_get("/v1/models/{model:.+}", self._handle_model)
        app.router.add_post("/v1/chat/completions", self._handle_chat)
        app.router.add_post("/v1/embeddings", self._handle_embeddings)
        return app

    async def serve(self) -> None:
        """Start the server and block until shutdown."""
        from aiohttp import web

        self._app = self.build_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await site.start()
        logger.info(
            "Gateway listening on http://%s:%d -> %s",
            self.config.host,
            self.config.port,
            self.config.upstream_base_url,
        )
        if self.config.disable_model_mapping:
            logger.info("Model mapping disabled: model names are sent to Gemini unchanged")
        if self.config.debug_dir:
            logger.info("Debug files will be saved to: %s", self.config.debug_dir)

        await self._shutdown_event.wait()
        logger.info("Gateway shutdown requested")
        await self.stop()

    def shutdown(self) -> None:
        """Ask a running ``serve()`` to return."""
        self._shutdown_event.set()

    async def stop(self) -> None:
        """Stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _error_response(self, error: GatewayError) -> web.Response:
        """Return an OpenAI-format error response."""
        from aiohttp import web

        return web.json_response(error.to_dict(), status=status_for(error))

    def _extract_api_key(self, request: web.Request) -> str:
        """Bearer token from the Authorization header, else the configured key."""
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.strip().partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
        if self.config.upstream_api_key:
            return self.config.upstream_api_key
        if header:
            raise MissingCredential("Authorization header must be 'Bearer <api key>'")
        raise MissingCredential("Missing Authorization header with a Gemini API key")

    async def _read_json(self, request: web.Request) -> Any:
        content_type = request.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            raise InvalidRequest(f"Content-Type must be application/json, got: {content_type}")
        try:
            return await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidRequest(f"Invalid JSON: {e}") from e

    def _internal_error(self, trace_id: str, error: Exception, start: float) -> InternalError:
        """Log an unexpected exception and wrap it as an OpenAI-format 500."""
        logger.exception("[%s] Unexpected error", trace_id)
        internal = InternalError(f"Internal error: {error}")
        self._tracer.log_response(trace_id, internal.status, time.monotonic() - start, error=internal.message)
        return internal

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def _handle_index(self, request: web.Request) -> web.Response:
        """Handle GET / - point clients at the API docs."""
        from aiohttp import web

        return web.json_response({"message": WELCOME_MESSAGE}, status=421)

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Handle GET /health."""
        from aiohttp import web

        return web.json_response({"status": "ok"})

    async def _handle_models(self, request: web.Request) -> web.Response:
        """Handle GET /v1/models."""
        from aiohttp import web

        return web.json_response({"object": "list", "data": self._adapter.mapper.catalog()})

    async def _handle_model(self, request: web.Request) -> web.Response:
        """Handle GET /v1/models/{model}."""
        from aiohttp import web

        return web.json_response(model_card(request.match_info["model"]))

    async def _handle_chat(self, request: web.Request) -> web.StreamResponse:
        """Handle POST /v1/chat/completions."""
        from aiohttp import web

        start = time.monotonic()
        try:
            api_key = self._extract_api_key(request)
            body = await self._read_json(request)
        except GatewayError as e:
            return self._error_response(e)

        trace_id = self._tracer.generate_trace_id(body if isinstance(body, dict) else {})
        self._tracer.save_debug(trace_id, "1_openai_request.json", body)

        chat_request, errors = parse_chat_request(body)
        if chat_request is None:
            return self._error_response(InvalidRequest("; ".join(errors)))

        logger.info(
            "[%s] Request: model=%s, messages=%d, stream=%s",
            trace_id,
            chat_request.model,
            len(chat_request.messages),
            chat_request.stream,
        )

        if chat_request.stream:
            try:
                frames = await self._adapter.complete_stream(chat_request, api_key, trace_id)
            except GatewayError as e:
                self._tracer.log_response(trace_id, status_for(e), time.monotonic() - start, error=e.message)
                return self._error_response(e)
            except Exception as e:
                return self._error_response(self._internal_error(trace_id, e, start))
            return await self._stream_frames(request, frames, trace_id, start)

        try:
            completion = await self._adapter.complete(chat_request, api_key, trace_id)
        except GatewayError as e:
            self._tracer.log_response(trace_id, status_for(e), time.monotonic() - start, error=e.message)
            return self._error_response(e)
        except Exception as e:
            return self._error_response(self._internal_error(trace_id, e, start))

        payload = completion.to_dict()
        self._tracer.save_debug(trace_id, "2_openai_response.json", payload)
        self._tracer.log_response(
            trace_id,
            200,
            time.monotonic() - start,
            tokens_in=completion.usage.prompt_tokens,
            tokens_out=completion.usage.completion_tokens,
        )
        return web.json_response(payload, headers={"X-Trace-Id": trace_id})

    async def _stream_frames(
        self,
        request: web.Request,
        frames: Any,
        trace_id: str,
        start: float,
    ) -> web.StreamResponse:
        """Write SSE frames to the client.

        Any failure after the response has started, upstream or internal, is
        written as a terminal ``data: {"error": ...}`` frame; ``[DONE]`` is
        never sent after it.
        """
        from aiohttp import web

        response = web.StreamResponse(status=200, headers={**EVENT_STREAM_HEADERS, "X-Trace-Id": trace_id})
        response.enable_chunked_encoding()
        await response.prepare(request)

        frame_count = 0
        try:
            async for frame in frames:
                await response.write(frame.encode("utf-8"))
                frame_count += 1
            self._tracer.log_response(trace_id, 200, time.monotonic() - start)
        except GatewayError as e:
            logger.error("[%s] Stream aborted after %d frames: %s", trace_id, frame_count, e.message)
            self._tracer.log_response(trace_id, status_for(e), time.monotonic() - start, error=e.message)
            await self._write_error_frame(response, e, trace_id)
        except ConnectionResetError:
            logger.debug("[%s] Client disconnected during streaming", trace_id)
        except Exception as e:
            await self._write_error_frame(response, self._internal_error(trace_id, e, start), trace_id)
        finally:
            await frames.aclose()

        self._tracer.save_debug(trace_id, "2_stream_summary.json", {"frames": frame_count})

        try:
            await response.write_eof()
        except ConnectionResetError:
            pass  # Client already disconnected

        return response

    async def _write_error_frame(self, response: web.StreamResponse, error: GatewayError, trace_id: str) -> None:
        """Write the terminal error event of an aborted stream."""
        try:
            await response.write(f"data: {json.dumps(error.to_dict())}\n\n".encode())
        except ConnectionResetError:
            logger.debug("[%s] Client disconnected before error frame", trace_id)

    async def _handle_embeddings(self, request: web.Request) -> web.Response:
        """Handle POST /v1/embeddings."""
        from aiohttp import web

        start = time.monotonic()
        try:
            api_key = self._extract_api_key(request)
            body = await self._read_json(request)
        except GatewayError as e:
            return self._error_response(e)

        trace_id = self._tracer.generate_trace_id(body if isinstance(body, dict) else {}, kind="embed")

        embedding_request, errors = parse_embedding_request(body)
        if embedding_request is None:
            return self._error_response(InvalidRequest("; ".join(errors)))

        logger.info(
            "[%s] Request: model=%s, inputs=%d",
            trace_id,
            embedding_request.model,
            len(embedding_request.inputs),
        )

        try:
            embeddings = await self._adapter.embed(embedding_request, api_key, trace_id)
        except GatewayError as e:
            self._tracer.log_response(trace_id, status_for(e), time.monotonic() - start, error=e.message)
            return self._error_response(e)
        except Exception as e:
            return self._error_response(self._internal_error(trace_id, e, start))

        self._tracer.log_response(trace_id, 200, time.monotonic() - start)
        return web.json_response(embeddings.to_dict(), headers={"X-Trace-Id": trace_id})

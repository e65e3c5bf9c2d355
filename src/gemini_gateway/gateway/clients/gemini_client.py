"""Gemini REST client for upstream API calls.

Uses aiohttp.ClientSession, one session per gateway request, bound to the
caller's API key. There is no retry and no circuit breaker: a failed call
fails the request that made it.

Failures are classified as:
- UpstreamTransport: the request never got an HTTP answer (DNS, reset, timeout)
- UpstreamTransport: also when Gemini refuses the credential (401, 403, or
  400 with reason API_KEY_INVALID); the upstream status is kept
- UpstreamRejected: Gemini answered with any other error status, an error
  payload, or a body that is not a JSON object
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from gemini_gateway.gateway.errors import UpstreamRejected, UpstreamTransport
from gemini_gateway.gateway.transforms.types import (
    EmbedContentRequest,
    GenerateContentRequest,
    GenerateContentResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Statuses Gemini uses for a missing, invalid or unauthorized key
AUTH_FAILURE_STATUSES = frozenset({401, 403})


@dataclass
class GeminiClientConfig:
    """Configuration for Gemini client."""

    base_url: str = DEFAULT_BASE_URL

    # Timeouts (seconds)
    connect_timeout: float = 10.0
    read_timeout: float = 300.0


def _error_message(status: int, body: str) -> str:
    """Pull the human message out of a Gemini error body."""
    try:
        payload = json.loads(body)
    except ValueError:
        return f"Upstream returned {status}: {body[:500]}"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"Upstream returned {status}: {body[:500]}"


def _is_auth_failure(status: int, body: str) -> bool:
    """Whether a Gemini error response means the API key was refused."""
    if status in AUTH_FAILURE_STATUSES:
        return True
    if status != 400:
        return False
    try:
        payload = json.loads(body)
    except ValueError:
        return False
    error = payload.get("error") if isinstance(payload, dict) else None
    details = error.get("details") if isinstance(error, dict) else None
    if not isinstance(details, list):
        return False
    return any(isinstance(d, dict) and d.get("reason") == "API_KEY_INVALID" for d in details)


def _require_object(data: Any, what: str) -> dict[str, Any]:
    """Gemini always answers with a JSON object; anything else is malformed."""
    if not isinstance(data, dict):
        raise UpstreamRejected(f"Upstream returned a malformed {what}: expected a JSON object", 0, str(data)[:500])
    return data


@dataclass
class GeminiClient:
    """HTTP client for the Gemini API, scoped to one credential.

    Example:
        >>> async with GeminiClient(api_key="...") as client:
        ...     response = await client.generate_content("gemini-1.5-flash-latest", request)
    """

    api_key: str
    config: GeminiClientConfig = field(default_factory=GeminiClientConfig)
    _session: aiohttp.ClientSession | None = None

    async def connect(self) -> None:
        """Open the HTTP session."""
        timeout = aiohttp.ClientTimeout(
            connect=self.config.connect_timeout,
            total=self.config.read_timeout,
        )
        self._session = aiohttp.ClientSession(
            headers={
                "x-goog-api-key": self.api_key,
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "GeminiClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _url(self, model: str, method: str) -> str:
        return f"{self.config.base_url}/models/{model}:{method}"

    async def _post(self, url: str, body: dict[str, Any], trace_id: str) -> aiohttp.ClientResponse:
        """POST and return the open response, raising on any non-200 status.

        The caller owns the returned response and must release it.
        """
        if self._session is None:
            raise RuntimeError("Client not connected. Call connect() first.")

        try:
            response = await self._session.post(url, json=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("[%s] Upstream transport failure: %s", trace_id, type(e).__name__)
            raise UpstreamTransport(f"Upstream request failed: {e or type(e).__name__}") from e

        if response.status != 200:
            try:
                error_body = await response.text()
            finally:
                response.release()
            logger.error("[%s] Upstream error %d: %s", trace_id, response.status, error_body[:500])
            if _is_auth_failure(response.status, error_body):
                raise UpstreamTransport(_error_message(response.status, error_body), response.status)
            raise UpstreamRejected(
                _error_message(response.status, error_body),
                response.status,
                error_body,
            )
        return response

    async def generate_content(
        self,
        model: str,
        request: GenerateContentRequest,
        trace_id: str = "-",
    ) -> GenerateContentResponse:
        """Non-streaming generation.

        Raises:
            UpstreamTransport: network failure or refused API key
            UpstreamRejected: other error status, or a malformed body
        """
        response = await self._post(self._url(model, "generateContent"), request.to_dict(), trace_id)
        try:
            data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamTransport(f"Upstream response could not be read: {e}") from e
        except ValueError as e:
            raise UpstreamRejected(f"Upstream returned invalid JSON: {e}", response.status) from e
        finally:
            response.release()
        return GenerateContentResponse.from_dict(_require_object(data, "response"))

    async def stream_generate_content(
        self,
        model: str,
        request: GenerateContentRequest,
        trace_id: str = "-",
    ) -> AsyncIterator[GenerateContentResponse]:
        """Start a streaming generation.

        The request is sent and its status checked before this returns, so
        a rejected call raises here rather than from the iterator.

        Returns:
            Async iterator of partial responses, in arrival order
        """
        url = self._url(model, "streamGenerateContent") + "?alt=sse"
        response = await self._post(url, request.to_dict(), trace_id)
        return self._iter_sse(response, trace_id)

    async def _iter_sse(
        self,
        response: aiohttp.ClientResponse,
        trace_id: str,
    ) -> AsyncIterator[GenerateContentResponse]:
        """Parse ``data:`` lines of the SSE body into partial responses."""
        line_count = 0
        try:
            async for line in response.content:
                line_str = line.decode("utf-8", errors="replace").strip()
                if not line_str.startswith("data:"):
                    continue

                line_count += 1
                data_str = line_str[5:].strip()
                logger.debug("[%s] SSE line %d: %s", trace_id, line_count, data_str[:200])
                try:
                    data = json.loads(data_str)
                except json.JSONDecodeError as e:
                    raise UpstreamTransport(f"Malformed upstream stream item: {data_str[:200]}") from e

                error = data.get("error") if isinstance(data, dict) else None
                if error:
                    message = error.get("message", "upstream error") if isinstance(error, dict) else str(error)
                    status = error.get("code", 0) if isinstance(error, dict) else 0
                    raise UpstreamRejected(message, status if isinstance(status, int) else 0, data_str)

                yield GenerateContentResponse.from_dict(_require_object(data, "stream item"))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("[%s] Upstream stream broke after %d items", trace_id, line_count)
            raise UpstreamTransport(f"Upstream stream interrupted: {e or type(e).__name__}") from e
        finally:
            response.release()

        logger.debug("[%s] Upstream stream complete, received %d items", trace_id, line_count)

    async def batch_embed_contents(
        self,
        model: str,
        requests: Sequence[EmbedContentRequest],
        trace_id: str = "-",
    ) -> list[list[float]]:
        """Embed several contents in one call.

        Returns:
            One vector per request, in request order
        """
        body = {"requests": [r.to_dict() for r in requests]}
        response = await self._post(self._url(model, "batchEmbedContents"), body, trace_id)
        try:
            data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamTransport(f"Upstream response could not be read: {e}") from e
        except ValueError as e:
            raise UpstreamRejected(f"Upstream returned invalid JSON: {e}", response.status) from e
        finally:
            response.release()
        embeddings = _require_object(data, "response").get("embeddings", [])
        if not isinstance(embeddings, list) or not all(isinstance(e, dict) for e in embeddings):
            raise UpstreamRejected("Upstream returned malformed embeddings", response.status)
        return [embedding.get("values", []) for embedding in embeddings]

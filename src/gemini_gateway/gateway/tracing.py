"""Request tracing for the gateway server.

Provides human-readable trace IDs and optional debug dumps of each
request/response pair, written to ``{debug_dir}/logs/{session_id}/{trace_id}/``.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _last_user_text(messages: list[Any]) -> str | None:
    """Text of the last user message, from string or multi-part content."""
    for m in reversed(messages):
        if not isinstance(m, dict) or m.get("role") != "user":
            continue
        content = m.get("content", "")
        if isinstance(content, str) and content.strip():
            return content
        if isinstance(content, list):
            for part in content:
                if isinstance(part, dict) and part.get("type") == "text" and str(part.get("text", "")).strip():
                    return str(part["text"])
    return None


class RequestTracer:
    """Generates trace IDs and saves debug data.

    Example:
        tracer = RequestTracer(debug_dir="/tmp/gateway-debug")
        trace_id = tracer.generate_trace_id(body)
        tracer.save_debug(trace_id, "1_openai_request.json", body)
    """

    def __init__(self, debug_dir: str | Path | None = None):
        self._request_counter = 0
        self._session_id: str | None = None
        self._debug_dir_config = debug_dir

    @property
    def debug_dir(self) -> Path | None:
        """Debug directory path, creating the session folder name on first access."""
        if not self._debug_dir_config:
            return None

        if self._session_id is None:
            self._session_id = time.strftime("%Y-%m-%d_%H-%M-%S")

        return Path(self._debug_dir_config) / "logs" / self._session_id

    def generate_trace_id(self, body: dict[str, Any], kind: str = "chat") -> str:
        """Generate a human-readable trace ID with sequence number and context.

        Format: {counter}_{hhmmss}_{kind}_{context}
        Example: 00001_031333_chat_Please_write_a
        """
        self._request_counter += 1
        timestamp = time.strftime("%H%M%S")

        context = "empty"
        text = None
        if kind == "chat":
            messages = body.get("messages")
            text = _last_user_text(messages if isinstance(messages, list) else [])
        else:
            value = body.get("input")
            text = value if isinstance(value, str) else (value[0] if isinstance(value, list) and value else None)
        if isinstance(text, str) and text.strip():
            words = text.split()[:3]
            context = "_".join(w[:8] for w in words if w and not w.startswith("<"))[:20]

        # Clean context for filesystem
        context = "".join(c if c.isalnum() or c == "_" else "" for c in context) or "request"

        return f"{self._request_counter:05d}_{timestamp}_{kind}_{context}"

    def save_debug(self, trace_id: str, filename: str, data: Any) -> None:
        """Save debug data to JSON file if debug_dir is configured."""
        if not self.debug_dir:
            return

        try:
            trace_path = self.debug_dir / trace_id
            trace_path.mkdir(parents=True, exist_ok=True)

            filepath = trace_path / filename
            with open(filepath, "w") as f:
                json.dump(data, f, indent=2, default=str)
            logger.debug("[%s] Saved debug file: %s", trace_id, filepath)
        except OSError as e:
            logger.warning("[%s] Failed to save debug file %s: %s", trace_id, filename, e)

    def log_response(
        self,
        trace_id: str,
        status_code: int,
        duration_s: float,
        tokens_in: int = 0,
        tokens_out: int = 0,
        error: str | None = None,
    ) -> None:
        """Log the outcome of a request."""
        if error:
            logger.warning(
                "[%s] request_failed: status=%d, error=%s (%.2fs)",
                trace_id,
                status_code,
                error[:100],
                duration_s,
            )
        else:
            logger.info(
                "[%s] request_complete: status=%d, tokens_in=%d, tokens_out=%d (%.2fs)",
                trace_id,
                status_code,
                tokens_in,
                tokens_out,
                duration_s,
            )

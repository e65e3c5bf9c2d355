"""Error kinds raised by the gateway.

Every failure carries a machine-readable ``code`` and a human ``message``.
The translation layer only classifies failures; the HTTP layer maps them to a
status with ``status_for`` and to an OpenAI error type with ``ERROR_TYPE_MAP``.
"""

from __future__ import annotations

from typing import Any

# Error type mapping from HTTP status to OpenAI error type
ERROR_TYPE_MAP = {
    400: "invalid_request_error",
    401: "authentication_error",
    403: "permission_error",
    404: "not_found_error",
    429: "rate_limit_error",
    500: "api_error",
    502: "api_error",
    503: "api_error",
    504: "api_error",
}


class GatewayError(Exception):
    """Base class for all gateway failures."""

    code = "gateway_error"
    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """OpenAI-format error body."""
        status = status_for(self)
        return {
            "error": {
                "message": self.message,
                "type": ERROR_TYPE_MAP.get(status, "api_error"),
                "code": self.code,
            }
        }


class InvalidRequest(GatewayError):
    """Malformed, empty or unsupported client input, detected before any upstream call."""

    code = "invalid_request"
    status = 400


class MissingCredential(InvalidRequest):
    """No usable bearer credential on the request."""

    code = "missing_api_key"
    status = 401


class UnsupportedContent(GatewayError):
    """A content part the upstream cannot represent."""

    code = "unsupported_content"
    status = 400

    def __init__(self, message: str, message_index: int | None = None):
        super().__init__(message)
        self.message_index = message_index


class UpstreamRejected(GatewayError):
    """The upstream answered but refused the call (unknown model, quota, bad argument)."""

    code = "upstream_rejected"
    status = 502

    def __init__(self, message: str, status_code: int = 0, response_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class UpstreamTransport(GatewayError):
    """Network or auth failure reaching the upstream.

    ``status_code`` is set when Gemini refused the credential (401, 403, or
    400 with reason API_KEY_INVALID) and is 0 for network failures.
    """

    code = "upstream_transport"
    status = 502

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class EmptyUpstreamResponse(GatewayError):
    """The upstream returned zero results where at least one was expected."""

    code = "empty_upstream_response"
    status = 502


class InternalError(GatewayError):
    """An unexpected failure inside the gateway."""

    code = "internal_error"
    status = 500


def status_for(error: GatewayError) -> int:
    """HTTP status for an error kind.

    Upstream rejections and auth failures keep the upstream's own 4xx/5xx
    status so that clients see e.g. 429 for quota exhaustion.
    """
    if isinstance(error, (UpstreamRejected, UpstreamTransport)) and 400 <= error.status_code < 600:
        return error.status_code
    return error.status

"""Upstream HTTP clients."""

from gemini_gateway.gateway.clients.gemini_client import GeminiClient, GeminiClientConfig

__all__ = ["GeminiClient", "GeminiClientConfig"]

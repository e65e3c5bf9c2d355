"""Gateway - OpenAI API surface backed by Gemini.

Components:
- server:  aiohttp server exposing the OpenAI endpoints
- adapter: one entry point per operation (complete, complete_stream, embed)
- models:  OpenAI → Gemini model name mapping
- clients: HTTP client for the Gemini REST API
- transforms: schema translation between the two APIs

Usage (via compose.py convenience function):
    from gemini_gateway.compose import create_gateway
    import asyncio

    asyncio.run(create_gateway(port=8080))

Usage (direct):
    from gemini_gateway.gateway.server import GatewayConfig, GatewayServer
    import asyncio

    async def main():
        server = GatewayServer(config=GatewayConfig(port=8080))
        await server.serve()

    asyncio.run(main())
"""

from gemini_gateway.gateway.errors import ERROR_TYPE_MAP, GatewayError
from gemini_gateway.gateway.models import ModelMapper
from gemini_gateway.gateway.tracing import RequestTracer

__all__ = [
    "ERROR_TYPE_MAP",
    "GatewayError",
    "ModelMapper",
    "RequestTracer",
]

"""gemini-gateway - OpenAI-compatible API gateway for Google Gemini.

Accepts OpenAI chat-completion and embedding requests, translates them to
the Gemini REST API and translates the answers back, so OpenAI clients can
talk to Gemini unchanged.

Layers:
    gateway/     HTTP server, adapter, model mapping, Gemini client
    transforms/  Schema translation between the two APIs (gateway.transforms)
    frontends/   Command-line interface

Quick Start:
    >>> from gemini_gateway.compose import create_gateway
    >>> import asyncio
    >>> asyncio.run(create_gateway(port=8080))

Then point any OpenAI client at it:
    $ export OPENAI_BASE_URL=http://127.0.0.1:8080/v1
    $ export OPENAI_API_KEY=<gemini api key>
"""

from gemini_gateway.__version__ import __version__

__all__ = ["__version__"]

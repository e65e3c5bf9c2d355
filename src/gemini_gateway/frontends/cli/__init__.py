"""CLI frontend for the gateway.

Commands:
    gemini-gateway serve     Run the OpenAI-compatible server
    gemini-gateway models    Show how OpenAI model names map to Gemini

Example:
    $ export GEMINI_API_KEY=...
    $ gemini-gateway serve --port 8080
"""

from gemini_gateway.frontends.cli.main import main

__all__ = ["main"]

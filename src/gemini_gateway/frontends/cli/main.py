"""CLI entry point."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import NoReturn


def main() -> None:
    """Main entry point for the CLI."""
    import importlib.util

    if importlib.util.find_spec("rich_click") is None:
        print("CLI dependencies not installed. Run: pip install gemini-gateway[cli]")
        sys.exit(1)

    _run_cli()


def _error_exit(message: str, code: int = 1) -> NoReturn:
    """Print error message and exit with code."""
    import rich_click as click

    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def _run_cli() -> None:
    """CLI definition and runner."""
    import rich_click as click

    click.rich_click.USE_RICH_MARKUP = True
    click.rich_click.USE_MARKDOWN = True
    click.rich_click.SHOW_ARGUMENTS = True
    click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
    click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
    click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
    click.rich_click.MAX_WIDTH = 100

    @click.group()
    @click.version_option(package_name="gemini-gateway")
    def cli():
        """gemini-gateway - OpenAI-compatible API for Google Gemini.

        Run a local server that speaks the OpenAI chat-completions and
        embeddings API and answers with Gemini.

            gemini-gateway serve     Start the server

            gemini-gateway models    Show the model name mapping
        """

    @cli.command()
    @click.option("--host", default=None, help="Host to bind (default: 127.0.0.1, env GATEWAY_HOST)")
    @click.option("--port", "-p", type=int, default=None, help="Port to bind (default: 8080, env GATEWAY_PORT)")
    @click.option("--base-url", "upstream_base_url", default=None, help="Gemini API base URL (env GEMINI_BASE_URL)")
    @click.option(
        "--api-key",
        "upstream_api_key",
        default=None,
        help="Fallback Gemini key for requests without a bearer token (env GEMINI_API_KEY)",
    )
    @click.option("--debug-dir", default=None, help="Save raw requests/responses here (env GATEWAY_DEBUG_DIR)")
    @click.option(
        "--no-model-mapping",
        "disable_model_mapping",
        is_flag=True,
        help="Send model names to Gemini unchanged (env DISABLE_MODEL_MAPPING)",
    )
    @click.option("--config", "-c", "config_file", default=None, help="YAML config file (env GATEWAY_CONFIG)")
    @click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR (env GATEWAY_LOG_LEVEL)")
    @click.option(
        "--log-format",
        type=click.Choice(["text", "json"]),
        default=None,
        help="Log output format (env GATEWAY_LOG_FORMAT)",
    )
    def serve(
        host: str | None,
        port: int | None,
        upstream_base_url: str | None,
        upstream_api_key: str | None,
        debug_dir: str | None,
        disable_model_mapping: bool,
        config_file: str | None,
        log_level: str | None,
        log_format: str | None,
    ):
        """Start the gateway server.

        Clients send their Gemini API key as the OpenAI bearer token.

        **Examples:**

            gemini-gateway serve

            gemini-gateway serve --port 9000 --debug-dir /tmp/gateway-debug

            gemini-gateway serve --config gateway.yaml --log-format json
        """
        from gemini_gateway.compose import create_gateway
        from gemini_gateway.logging_config import configure_logging

        try:
            configure_logging(level=log_level, format=log_format)  # type: ignore[arg-type]
        except ValueError as e:
            _error_exit(str(e))

        try:
            asyncio.run(
                create_gateway(
                    host=host,
                    port=port,
                    upstream_base_url=upstream_base_url,
                    upstream_api_key=upstream_api_key,
                    debug_dir=debug_dir,
                    disable_model_mapping=disable_model_mapping or None,
                    config_file=config_file,
                )
            )
        except KeyboardInterrupt:
            click.echo("Stopped.", err=True)
        except (ValueError, OSError) as e:
            _error_exit(str(e))

    @cli.command()
    @click.option("--config", "-c", "config_file", default=None, help="YAML config file (env GATEWAY_CONFIG)")
    @click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
    def models(config_file: str | None, json_output: bool):
        """Show the model catalog and where each name is routed.

        **Examples:**

            gemini-gateway models

            gemini-gateway models --json
        """
        from gemini_gateway.compose import load_gateway_config
        from gemini_gateway.gateway.models import ModelMapper

        try:
            config = asyncio.run(load_gateway_config(config_file=config_file))
        except ValueError as e:
            _error_exit(str(e))

        mapper = ModelMapper.build(config.model_aliases, enabled=not config.disable_model_mapping)
        routes = [mapper.resolve(card["id"]) for card in mapper.catalog()]

        if json_output:
            data = [
                {"id": r.requested, "upstream": r.upstream, "capability": r.capability} for r in routes
            ]
            click.echo(json.dumps(data, indent=2))
            return

        width = max(len(r.requested) for r in routes)
        for r in routes:
            click.echo(f"{r.requested:<{width}}  ->  {r.upstream}  ({r.capability})")

    cli()


if __name__ == "__main__":
    main()

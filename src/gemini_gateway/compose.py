"""Composition helpers for running the gateway.

These helpers resolve configuration from arguments, environment and an
optional YAML file, then wire up and run the server.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from gemini_gateway.gateway.clients.gemini_client import DEFAULT_BASE_URL
from gemini_gateway.gateway.server import GatewayConfig, GatewayServer

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


async def _load_gateway_config(
    config_file: str | None,
    env_config_key: str = "GATEWAY_CONFIG",
) -> tuple[dict[str, Any], Callable[[str | None, str, str, str], str]]:
    """Load the YAML config file and return (file_config, get_value_fn).

    Args:
        config_file: Path to config file, or None to check env var.
        env_config_key: Environment variable name for config path.

    Returns:
        Tuple of (file_config dict, get_value function).
        The get_value function resolves config values with priority:
        arg > env > file > default.
    """
    import yaml

    file_config: dict[str, Any] = {}
    config_path = config_file or os.environ.get(env_config_key)
    if config_path:
        try:
            content = await asyncio.to_thread(Path(config_path).read_text)
        except FileNotFoundError:
            logger.warning("Config file not found: %s", config_path)
        else:
            loaded = yaml.safe_load(content) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping")
            file_config = loaded

    def get_value(arg: str | None, env_key: str, file_key: str, default: str) -> str:
        if arg is not None:
            return arg
        env_val = os.environ.get(env_key)
        if env_val:
            return env_val
        file_val = file_config.get(file_key)
        if file_val is not None and file_val != "":
            return str(file_val)
        return default

    return file_config, get_value


async def load_gateway_config(
    host: str | None = None,
    port: int | None = None,
    upstream_base_url: str | None = None,
    upstream_api_key: str | None = None,
    debug_dir: str | None = None,
    disable_model_mapping: bool | None = None,
    config_file: str | None = None,
) -> GatewayConfig:
    """Resolve a GatewayConfig from arguments, environment and config file.

    Environment variables:
        GATEWAY_HOST, GATEWAY_PORT, GEMINI_BASE_URL, GEMINI_API_KEY,
        GATEWAY_DEBUG_DIR, DISABLE_MODEL_MAPPING, GATEWAY_CONFIG (file path)

    The YAML file may additionally carry ``model_aliases`` (a mapping of
    OpenAI model names to Gemini model names), ``connect_timeout``,
    ``read_timeout`` and ``max_body_size``.
    """
    file_config, get_value = await _load_gateway_config(config_file)

    mapping_flag = get_value(
        None if disable_model_mapping is None else str(disable_model_mapping),
        "DISABLE_MODEL_MAPPING",
        "disable_model_mapping",
        "false",
    )

    aliases = file_config.get("model_aliases") or {}
    if not isinstance(aliases, dict):
        raise ValueError("model_aliases must be a mapping of model names")

    defaults = GatewayConfig()
    return GatewayConfig(
        host=get_value(host, "GATEWAY_HOST", "host", defaults.host),
        port=int(get_value(None if port is None else str(port), "GATEWAY_PORT", "port", str(defaults.port))),
        upstream_base_url=get_value(upstream_base_url, "GEMINI_BASE_URL", "upstream_base_url", DEFAULT_BASE_URL),
        upstream_api_key=get_value(upstream_api_key, "GEMINI_API_KEY", "upstream_api_key", ""),
        connect_timeout=float(file_config.get("connect_timeout", defaults.connect_timeout)),
        read_timeout=float(file_config.get("read_timeout", defaults.read_timeout)),
        max_body_size=int(file_config.get("max_body_size", defaults.max_body_size)),
        debug_dir=get_value(debug_dir, "GATEWAY_DEBUG_DIR", "debug_dir", "") or None,
        disable_model_mapping=mapping_flag.strip().lower() in TRUTHY,
        model_aliases={str(k): str(v) for k, v in aliases.items()},
    )


async def create_gateway(
    host: str | None = None,
    port: int | None = None,
    upstream_base_url: str | None = None,
    upstream_api_key: str | None = None,
    debug_dir: str | None = None,
    disable_model_mapping: bool | None = None,
    config_file: str | None = None,
) -> None:
    """Create and run the gateway server.

    Blocks until the server is shut down. See ``load_gateway_config`` for
    how each setting is resolved.

    Example:
        >>> asyncio.run(create_gateway(port=8080))
    """
    config = await load_gateway_config(
        host=host,
        port=port,
        upstream_base_url=upstream_base_url,
        upstream_api_key=upstream_api_key,
        debug_dir=debug_dir,
        disable_model_mapping=disable_model_mapping,
        config_file=config_file,
    )
    server = GatewayServer(config=config)
    await server.serve()

"""Tests for gateway configuration resolution."""

import pytest

from gemini_gateway.compose import load_gateway_config
from gemini_gateway.gateway.clients.gemini_client import DEFAULT_BASE_URL

ENV_KEYS = (
    "GATEWAY_HOST",
    "GATEWAY_PORT",
    "GEMINI_BASE_URL",
    "GEMINI_API_KEY",
    "GATEWAY_DEBUG_DIR",
    "DISABLE_MODEL_MAPPING",
    "GATEWAY_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestLoadGatewayConfig:
    """Tests for load_gateway_config priority: arg > env > file > default."""

    async def test_defaults(self):
        config = await load_gateway_config()

        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.upstream_base_url == DEFAULT_BASE_URL
        assert config.upstream_api_key == ""
        assert config.debug_dir is None
        assert config.disable_model_mapping is False
        assert config.model_aliases == {}

    async def test_environment(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_PORT", "9000")
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        monkeypatch.setenv("DISABLE_MODEL_MAPPING", "true")

        config = await load_gateway_config()

        assert config.port == 9000
        assert config.upstream_api_key == "env-key"
        assert config.disable_model_mapping is True

    async def test_argument_beats_environment(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_PORT", "9000")

        config = await load_gateway_config(port=7000)

        assert config.port == 7000

    async def test_config_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "gateway.yaml"
        config_file.write_text(
            "host: 0.0.0.0\n"
            "port: 8181\n"
            "read_timeout: 60\n"
            "debug_dir: /tmp/gw\n"
            "model_aliases:\n"
            "  house-model: gemini-1.5-pro-002\n"
        )
        monkeypatch.setenv("GATEWAY_CONFIG", str(config_file))

        config = await load_gateway_config()

        assert config.host == "0.0.0.0"
        assert config.port == 8181
        assert config.read_timeout == 60.0
        assert config.debug_dir == "/tmp/gw"
        assert config.model_aliases == {"house-model": "gemini-1.5-pro-002"}

    async def test_environment_beats_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "gateway.yaml"
        config_file.write_text("port: 8181\n")
        monkeypatch.setenv("GATEWAY_PORT", "9000")

        config = await load_gateway_config(config_file=str(config_file))

        assert config.port == 9000

    async def test_missing_file_uses_defaults(self, tmp_path):
        config = await load_gateway_config(config_file=str(tmp_path / "missing.yaml"))

        assert config.port == 8080

    async def test_non_mapping_file_rejected(self, tmp_path):
        config_file = tmp_path / "gateway.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            await load_gateway_config(config_file=str(config_file))

import pytest

from mcp_bridge.config.settings import Settings
from mcp_bridge.domain.exceptions import ConfigurationError
from mcp_bridge.providers import create_provider
from mcp_bridge.providers.gemini_client import GeminiClient


def test_yaml_config_file(tmp_path, monkeypatch):
    cfg = tmp_path / "bridge.yaml"
    cfg.write_text("db_schema: analytics\nmcp_server_args: ['-m', 'custom.server']\n", encoding="utf-8")
    monkeypatch.setenv("BRIDGE_CONFIG_FILE", str(cfg))
    monkeypatch.delenv("DB_SCHEMA", raising=False)
    monkeypatch.delenv("MCP_SERVER_ARGS", raising=False)

    loaded = Settings()
    assert loaded.db_schema == "analytics"
    assert loaded.mcp_server_args == ["-m", "custom.server"]


def test_env_overrides_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / "bridge.yaml"
    cfg.write_text("db_schema: analytics\n", encoding="utf-8")
    monkeypatch.setenv("BRIDGE_CONFIG_FILE", str(cfg))
    monkeypatch.setenv("DB_SCHEMA", "reporting")
    assert Settings().db_schema == "reporting"


def test_blank_api_key_means_unconfigured():
    assert Settings(gemini_api_key="   ").gemini_api_key is None


def test_create_provider():
    assert isinstance(create_provider("gemini"), GeminiClient)
    with pytest.raises(ConfigurationError):
        create_provider("openai")

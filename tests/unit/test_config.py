"""Tests for PluginConfig and logging setup."""

import io
import logging

import pytest

from touchportal_client.config import DEFAULT_HOST, DEFAULT_PORT, PluginConfig
from touchportal_client.log import configure_logging, get_logger


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "TOUCHPORTAL_PLUGIN_ID",
        "TOUCHPORTAL_HOST",
        "TOUCHPORTAL_PORT",
        "TOUCHPORTAL_UPDATE_URL",
        "TOUCHPORTAL_CONNECT_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestPluginConfig:
    def test_defaults(self):
        config = PluginConfig(plugin_id="p")
        assert config.host == DEFAULT_HOST == "127.0.0.1"
        assert config.port == DEFAULT_PORT == 12136
        assert config.update_url is None
        assert config.connect_timeout == 10.0

    def test_plugin_id_required(self):
        with pytest.raises(ValueError, match="plugin_id"):
            PluginConfig(plugin_id="")

    def test_invalid_port(self):
        with pytest.raises(ValueError, match="port"):
            PluginConfig(plugin_id="p", port=70000)

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            PluginConfig(plugin_id="p", connect_timeout=0)

    def test_timeout_can_be_disabled(self):
        assert PluginConfig(plugin_id="p", connect_timeout=None).connect_timeout is None


class TestFromEnv:
    def test_reads_environment(self, clean_env):
        clean_env.setenv("TOUCHPORTAL_PLUGIN_ID", "env.plugin")
        clean_env.setenv("TOUCHPORTAL_PORT", "9000")
        clean_env.setenv("TOUCHPORTAL_UPDATE_URL", "https://example.invalid/v.json")
        clean_env.setenv("TOUCHPORTAL_CONNECT_TIMEOUT", "none")

        config = PluginConfig.from_env()

        assert config.plugin_id == "env.plugin"
        assert config.port == 9000
        assert config.update_url == "https://example.invalid/v.json"
        assert config.connect_timeout is None

    def test_overrides_win(self, clean_env):
        clean_env.setenv("TOUCHPORTAL_PLUGIN_ID", "env.plugin")
        config = PluginConfig.from_env(plugin_id="cli.plugin", port=None)

        assert config.plugin_id == "cli.plugin"
        assert config.port == DEFAULT_PORT

    def test_missing_plugin_id(self, clean_env):
        with pytest.raises(ValueError, match="TOUCHPORTAL_PLUGIN_ID"):
            PluginConfig.from_env()

    def test_bad_port(self, clean_env):
        clean_env.setenv("TOUCHPORTAL_PORT", "abc")
        with pytest.raises(ValueError, match="TOUCHPORTAL_PORT"):
            PluginConfig.from_env(plugin_id="p")

    def test_unknown_override(self, clean_env):
        with pytest.raises(TypeError):
            PluginConfig.from_env(plugin_id="p", colour="blue")


class TestResolveVersion:
    def test_explicit(self):
        assert PluginConfig(plugin_id="p", plugin_version="2.0.0").resolve_version() == "2.0.0"

    def test_from_distribution(self):
        config = PluginConfig(plugin_id="p", plugin_distribution="pytest")
        assert config.resolve_version() == pytest.__version__

    def test_unknown_distribution(self):
        config = PluginConfig(plugin_id="p", plugin_distribution="no-such-dist-xyz")
        assert config.resolve_version() is None

    def test_nothing_configured(self):
        assert PluginConfig(plugin_id="p").resolve_version() is None


class TestLogging:
    def test_format_includes_plugin_id(self):
        stream = io.StringIO()
        configure_logging(logging.DEBUG, stream=stream)

        get_logger("touchportal_client.session", "com.example.plugin").warning("Connection closed")

        assert ":WARNING: Connection closed" in stream.getvalue()
        assert " : com.example.plugin :" in stream.getvalue()

    def test_plain_logger_gets_placeholder(self):
        stream = io.StringIO()
        configure_logging(logging.INFO, stream=stream)

        logging.getLogger("touchportal_client.bus").info("hello")

        assert " : - :INFO: hello" in stream.getvalue()


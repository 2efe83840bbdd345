"""Tests for configuration loading."""

from schema_discovery.config import Config, LangfuseConfig, get_config


class TestConfig:
    """Tests for the configuration dataclasses."""

    def test_get_config_sections(self):
        cfg = get_config()
        assert isinstance(cfg, Config)
        assert cfg.orchestrator.max_steps > 0
        assert cfg.tools.max_content_chars > 0
        assert cfg.server.port > 0

    def test_langfuse_enabled_with_both_keys(self):
        assert LangfuseConfig(public_key="pk", secret_key="sk").enabled is True

    def test_langfuse_disabled_with_one_key(self):
        assert LangfuseConfig(public_key="pk", secret_key="").enabled is False

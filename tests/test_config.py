"""
config.py tests
"""

import pytest

from oneword_core.config import (
    CommunityConfig,
    OneWordConfig,
    RateLimitConfig,
    RequestConfig,
    RunnerConfig,
    StorageConfig,
    load_config,
    load_credentials,
)

CONFIG_ENV_VARS = [
    "ONEWORD_REQUESTS_PER_MINUTE", "ONEWORD_TIMEOUT_SECONDS", "ONEWORD_MAX_TOKENS",
    "ONEWORD_PACING_DELAY_SECONDS",
    "ANTHROPIC_BASE_URL", "OPENAI_BASE_URL", "KIMI_BASE_URL",
    "ONEWORD_COMMUNITY_ENABLED", "ONEWORD_COMMUNITY_URL", "ONEWORD_COMMUNITY_TIMEOUT_SECONDS",
    "ONEWORD_DATA_DIR",
]

CREDENTIAL_VARS = [
    "ANTHROPIC_API_KEY", "OPENAI_API_KEY", "KIMI_API_KEY", "MOONSHOT_API_KEY",
    "GEMINI_API_KEY", "GOOGLE_API_KEY",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in CONFIG_ENV_VARS + CREDENTIAL_VARS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestSections:
    def test_defaults(self):
        config = OneWordConfig()
        assert config.rate_limit.requests_per_minute == 60
        assert config.request.timeout_seconds == 30.0
        assert config.request.max_tokens == 5
        assert config.runner.pacing_delay_seconds == 0.1
        assert config.community.enabled is False
        assert config.community.base_url is None
        assert config.storage.data_dir == "data"

    def test_to_dict(self):
        d = OneWordConfig().to_dict()
        assert "oneword_config" in d
        assert d["oneword_config"]["rate_limit"]["requests_per_minute"] == 60
        assert d["oneword_config"]["community"]["enabled"] is False

    def test_from_dict_keeps_defaults(self):
        config = OneWordConfig.from_dict({"oneword_config": {"request": {"timeout_seconds": 5}}})
        assert config.request.timeout_seconds == 5
        assert config.request.max_tokens == 5
        assert config.rate_limit.requests_per_minute == 60

    def test_from_dict_without_key(self):
        config = OneWordConfig.from_dict({"runner": {"pacing_delay_seconds": 0}})
        assert config.runner.pacing_delay_seconds == 0

    def test_roundtrip(self):
        original = OneWordConfig(
            rate_limit=RateLimitConfig(requests_per_minute=10),
            request=RequestConfig(timeout_seconds=3.0, max_tokens=8),
            runner=RunnerConfig(pacing_delay_seconds=0.5),
            community=CommunityConfig(enabled=True, base_url="https://community.example"),
            storage=StorageConfig(data_dir="/tmp/oneword"),
        )
        assert OneWordConfig.from_dict(original.to_dict()) == original


class TestLoadConfig:
    def test_defaults_without_env(self, clean_env):
        config = load_config()
        assert config == OneWordConfig()

    def test_custom_env_values(self, clean_env):
        clean_env.setenv("ONEWORD_REQUESTS_PER_MINUTE", "30")
        clean_env.setenv("ONEWORD_TIMEOUT_SECONDS", "12.5")
        clean_env.setenv("ONEWORD_MAX_TOKENS", "3")
        clean_env.setenv("ONEWORD_PACING_DELAY_SECONDS", "0")
        clean_env.setenv("OPENAI_BASE_URL", "http://proxy.local/v1")
        clean_env.setenv("ONEWORD_DATA_DIR", "/var/lib/oneword")

        config = load_config()

        assert config.rate_limit.requests_per_minute == 30
        assert config.request.timeout_seconds == 12.5
        assert config.request.max_tokens == 3
        assert config.runner.pacing_delay_seconds == 0.0
        assert config.endpoints.openai_base_url == "http://proxy.local/v1"
        assert config.endpoints.anthropic_base_url is None
        assert config.storage.data_dir == "/var/lib/oneword"

    def test_community_enabled_by_url(self, clean_env):
        clean_env.setenv("ONEWORD_COMMUNITY_URL", "https://community.example/api")
        config = load_config()
        assert config.community.enabled is True
        assert config.community.base_url == "https://community.example/api"

    def test_community_explicitly_disabled(self, clean_env):
        clean_env.setenv("ONEWORD_COMMUNITY_URL", "https://community.example/api")
        clean_env.setenv("ONEWORD_COMMUNITY_ENABLED", "false")
        assert load_config().community.enabled is False

    def test_empty_value_counts_as_unset(self, clean_env):
        clean_env.setenv("ANTHROPIC_BASE_URL", "")
        assert load_config().endpoints.anthropic_base_url is None

    def test_invalid_int(self, clean_env):
        clean_env.setenv("ONEWORD_REQUESTS_PER_MINUTE", "fast")
        with pytest.raises(ValueError, match="ONEWORD_REQUESTS_PER_MINUTE"):
            load_config()

    def test_invalid_float(self, clean_env):
        clean_env.setenv("ONEWORD_TIMEOUT_SECONDS", "soon")
        with pytest.raises(ValueError, match="ONEWORD_TIMEOUT_SECONDS"):
            load_config()


class TestLoadCredentials:
    def test_none_configured(self, clean_env):
        assert load_credentials() == {}

    def test_collects_keys(self, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-x")
        clean_env.setenv("OPENAI_API_KEY", "sk-y")
        assert load_credentials() == {"anthropic": "sk-ant-x", "openai": "sk-y"}

    def test_fallback_variable(self, clean_env):
        clean_env.setenv("MOONSHOT_API_KEY", "sk-moon")
        clean_env.setenv("GOOGLE_API_KEY", "AIza-google")
        assert load_credentials() == {"kimi": "sk-moon", "google": "AIza-google"}

    def test_primary_variable_wins(self, clean_env):
        clean_env.setenv("KIMI_API_KEY", "sk-kimi")
        clean_env.setenv("MOONSHOT_API_KEY", "sk-moon")
        assert load_credentials()["kimi"] == "sk-kimi"

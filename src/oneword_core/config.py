"""
oneword-core Configuration

Manages loading from environment variables and default values.
"""

import os
from dataclasses import dataclass, field, asdict

from oneword_core.domain.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_PACING_DELAY_SECONDS,
    DEFAULT_REQUESTS_PER_MINUTE,
    DEFAULT_TIMEOUT_SECONDS,
)


def _env_bool(key: str, default: bool) -> bool:
    """Convert an environment variable to bool"""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_str(key: str, default: str | None) -> str | None:
    """Get an environment variable as a string (empty counts as unset)"""
    val = os.environ.get(key)
    return val if val else default


@dataclass
class RateLimitConfig:
    """Per-provider rate limit"""
    requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE


@dataclass
class RequestConfig:
    """Single provider request settings"""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_tokens: int = DEFAULT_MAX_TOKENS


@dataclass
class RunnerConfig:
    """Experiment runner settings"""
    pacing_delay_seconds: float = DEFAULT_PACING_DELAY_SECONDS


@dataclass
class ProviderEndpointsConfig:
    """Base URL overrides (e.g. a trusted proxy); None uses the vendor endpoint"""
    anthropic_base_url: str | None = None
    openai_base_url: str | None = None
    kimi_base_url: str | None = None


@dataclass
class CommunityConfig:
    """Anonymous community reporting"""
    enabled: bool = False
    base_url: str | None = None
    timeout_seconds: float = 10.0


@dataclass
class StorageConfig:
    """File storage location"""
    data_dir: str = "data"


@dataclass
class OneWordConfig:
    """Overall configuration"""
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    request: RequestConfig = field(default_factory=RequestConfig)
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    endpoints: ProviderEndpointsConfig = field(default_factory=ProviderEndpointsConfig)
    community: CommunityConfig = field(default_factory=CommunityConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"oneword_config": asdict(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "OneWordConfig":
        """Create from dictionary (handles presence/absence of oneword_config key)"""
        config_data = data.get("oneword_config", data)
        return cls(
            rate_limit=RateLimitConfig(**config_data.get("rate_limit", {})),
            request=RequestConfig(**config_data.get("request", {})),
            runner=RunnerConfig(**config_data.get("runner", {})),
            endpoints=ProviderEndpointsConfig(**config_data.get("endpoints", {})),
            community=CommunityConfig(**config_data.get("community", {})),
            storage=StorageConfig(**config_data.get("storage", {})),
        )


def load_config() -> OneWordConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Returns:
        OneWordConfig
    """
    rate_limit = RateLimitConfig(
        requests_per_minute=_env_int("ONEWORD_REQUESTS_PER_MINUTE", DEFAULT_REQUESTS_PER_MINUTE),
    )
    request = RequestConfig(
        timeout_seconds=_env_float("ONEWORD_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        max_tokens=_env_int("ONEWORD_MAX_TOKENS", DEFAULT_MAX_TOKENS),
    )
    runner = RunnerConfig(
        pacing_delay_seconds=_env_float("ONEWORD_PACING_DELAY_SECONDS", DEFAULT_PACING_DELAY_SECONDS),
    )
    endpoints = ProviderEndpointsConfig(
        anthropic_base_url=_env_str("ANTHROPIC_BASE_URL", None),
        openai_base_url=_env_str("OPENAI_BASE_URL", None),
        kimi_base_url=_env_str("KIMI_BASE_URL", None),
    )
    community_url = _env_str("ONEWORD_COMMUNITY_URL", None)
    community = CommunityConfig(
        enabled=_env_bool("ONEWORD_COMMUNITY_ENABLED", community_url is not None),
        base_url=community_url,
        timeout_seconds=_env_float("ONEWORD_COMMUNITY_TIMEOUT_SECONDS", 10.0),
    )
    storage = StorageConfig(
        data_dir=_env_str("ONEWORD_DATA_DIR", "data"),
    )
    return OneWordConfig(
        rate_limit=rate_limit,
        request=request,
        runner=runner,
        endpoints=endpoints,
        community=community,
        storage=storage,
    )


# provider id -> environment variables checked in order
CREDENTIAL_ENV_VARS = {
    "anthropic": ("ANTHROPIC_API_KEY",),
    "openai": ("OPENAI_API_KEY",),
    "kimi": ("KIMI_API_KEY", "MOONSHOT_API_KEY"),
    "google": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}


def load_credentials() -> dict[str, str]:
    """
    Collect BYOK credentials from environment variables

    Returns:
        Mapping of provider id to API key (providers without a key are omitted)
    """
    credentials = {}
    for provider_id, env_vars in CREDENTIAL_ENV_VARS.items():
        for env_var in env_vars:
            key = _env_str(env_var, None)
            if key:
                credentials[provider_id] = key
                break
    return credentials

"""
Provider registry

Holds one provider instance and one rate limiter per provider id and
dispatches sampling, key checks and cost estimation by id.
"""

from __future__ import annotations

import asyncio
import logging

from oneword_core.config import OneWordConfig
from oneword_core.domain.constants import DEFAULT_REQUESTS_PER_MINUTE, DEFAULT_TIMEOUT_SECONDS
from oneword_core.domain.entities import ModelInfo
from oneword_core.domain.exceptions import ProviderTimeoutError, UnknownProviderError
from oneword_core.domain.value_objects import CostParams, KeyValidationResult, SampleParams
from oneword_core.infrastructure.providers.base import BaseProvider
from oneword_core.infrastructure.providers.claude import AnthropicProvider
from oneword_core.infrastructure.providers.gemini import GeminiProvider
from oneword_core.infrastructure.providers.openai_compat import KimiProvider, OpenAIProvider
from oneword_core.infrastructure.providers.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def default_providers(config: OneWordConfig | None = None) -> list[BaseProvider]:
    """
    Create the built-in providers

    Args:
        config: OneWordConfig (defaults are used if not provided)

    Returns:
        Anthropic, OpenAI, Kimi and Google providers
    """
    config = config or OneWordConfig()
    timeout = config.request.timeout_seconds
    endpoints = config.endpoints
    return [
        AnthropicProvider(base_url=endpoints.anthropic_base_url, timeout_seconds=timeout),
        OpenAIProvider(base_url=endpoints.openai_base_url, timeout_seconds=timeout),
        KimiProvider(base_url=endpoints.kimi_base_url, timeout_seconds=timeout),
        GeminiProvider(timeout_seconds=timeout),
    ]


class ProviderRegistry:
    """Registry of providers keyed by provider id"""

    def __init__(
        self,
        providers: list[BaseProvider] | None = None,
        requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Args:
            providers: Providers to register (the built-ins if not specified)
            requests_per_minute: Default rate limit for each provider
            timeout_seconds: Per-call timeout, including the provider's own network time
        """
        self.requests_per_minute = requests_per_minute
        self.timeout_seconds = timeout_seconds
        self._providers: dict[str, BaseProvider] = {}
        self._rate_limiters: dict[str, RateLimiter] = {}

        for provider in (default_providers() if providers is None else providers):
            self.register(provider)

    @classmethod
    def from_config(cls, config: OneWordConfig) -> ProviderRegistry:
        return cls(
            providers=default_providers(config),
            requests_per_minute=config.rate_limit.requests_per_minute,
            timeout_seconds=config.request.timeout_seconds,
        )

    def register(self, provider: BaseProvider) -> None:
        self._providers[provider.id] = provider
        self._rate_limiters[provider.id] = RateLimiter(self.requests_per_minute)

    def get_provider(self, provider_id: str) -> BaseProvider | None:
        return self._providers.get(provider_id)

    def get_all_providers(self) -> list[BaseProvider]:
        return list(self._providers.values())

    def find_model(self, model_id: str) -> ModelInfo | None:
        for provider in self._providers.values():
            for model in provider.models:
                if model.id == model_id:
                    return model
        return None

    def provider_for_model(self, model_id: str) -> str | None:
        model = self.find_model(model_id)
        return model.provider_id if model else None

    def validate_key(self, provider_id: str, key: str) -> KeyValidationResult:
        """
        Check a key's format for a provider.

        This is a syntactic check only; the key is not sent anywhere.
        """
        provider = self.get_provider(provider_id)
        if provider is None:
            return KeyValidationResult(is_valid=False, error="Unknown provider")

        if provider.validate_key_format(key):
            return KeyValidationResult(is_valid=True)
        return KeyValidationResult(
            is_valid=False,
            error=f"Key does not look like a {provider.name} API key",
        )

    async def sample(self, provider_id: str, params: SampleParams, key: str) -> str:
        """
        Sample one word through the provider's rate limiter.

        Args:
            provider_id: Registered provider id
            params: Sampling parameters
            key: API key

        Returns:
            The normalized word

        Raises:
            UnknownProviderError: If provider_id is not registered
            ProviderTimeoutError: If the call exceeds the timeout
            ProviderError: On any other provider failure
        """
        provider = self.get_provider(provider_id)
        if provider is None:
            raise UnknownProviderError(provider_id)

        async def _call() -> str:
            try:
                return await asyncio.wait_for(provider.sample(params, key), self.timeout_seconds)
            except asyncio.TimeoutError as e:
                raise ProviderTimeoutError(provider_id, self.timeout_seconds) from e

        return await self._rate_limiters[provider_id].submit(_call)

    def estimate_cost(self, provider_id: str, params: CostParams) -> float:
        provider = self.get_provider(provider_id)
        if provider is None:
            return 0.0
        return provider.estimate_cost(params)

    def set_rate_limit(self, provider_id: str, requests_per_minute: int) -> None:
        if provider_id not in self._providers:
            raise UnknownProviderError(provider_id)
        logger.info("Rate limit for %s set to %d requests/minute", provider_id, requests_per_minute)
        self._rate_limiters[provider_id] = RateLimiter(requests_per_minute)

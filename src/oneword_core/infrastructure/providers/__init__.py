"""
Provider package

Provides a unified interface to each LLM provider.
"""

from oneword_core.infrastructure.providers.base import BaseProvider, extract_word
from oneword_core.infrastructure.providers.claude import AnthropicProvider
from oneword_core.infrastructure.providers.gemini import GeminiProvider
from oneword_core.infrastructure.providers.openai_compat import KimiProvider, OpenAIProvider
from oneword_core.infrastructure.providers.rate_limiter import RateLimiter
from oneword_core.infrastructure.providers.registry import ProviderRegistry, default_providers

__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "GeminiProvider",
    "KimiProvider",
    "OpenAIProvider",
    "ProviderRegistry",
    "RateLimiter",
    "default_providers",
    "extract_word",
]

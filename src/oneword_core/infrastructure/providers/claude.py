"""
Anthropic Claude provider
"""

import anthropic
from anthropic import AsyncAnthropic

from oneword_core.domain.constants import ANTHROPIC, DEFAULT_TIMEOUT_SECONDS, SYSTEM_PROMPT
from oneword_core.domain.exceptions import (
    EmptyResponseError,
    ProviderAPIError,
    ProviderTimeoutError,
)
from oneword_core.domain.value_objects import SampleParams
from oneword_core.infrastructure.providers.base import BaseProvider


class AnthropicProvider(BaseProvider):
    """Provider using the Anthropic Messages API"""

    id = "anthropic"
    name = "Anthropic"

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Args:
            base_url: API endpoint (a trusted proxy may be used; defaults to the SDK endpoint)
            timeout_seconds: Request timeout in seconds (default: 30)
        """
        super().__init__(ANTHROPIC.models)
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._clients: dict[str, AsyncAnthropic] = {}

    def validate_key_format(self, key: str) -> bool:
        # Anthropic keys start with 'sk-ant-' and are typically 100+ chars
        if not key or not isinstance(key, str):
            return False
        return key.startswith("sk-ant-") and len(key) > 50

    def _client(self, key: str) -> AsyncAnthropic:
        client = self._clients.get(key)
        if client is None:
            # Retries are disabled: a failed sample is skipped, never retried
            client = AsyncAnthropic(
                api_key=key,
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
            self._clients[key] = client
        return client

    async def sample(self, params: SampleParams, key: str) -> str:
        """
        Request a single-word completion

        Args:
            params: Sampling parameters
            key: Anthropic API key

        Returns:
            The normalized word

        Raises:
            ProviderTimeoutError: If the SDK request times out
            ProviderAPIError: On HTTP or connection errors
            EmptyResponseError: If the response has no usable text
        """
        try:
            response = await self._client(key).messages.create(
                model=params.model,
                max_tokens=params.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": params.stimulus}],
                # Anthropic only supports temperature 0..1
                temperature=min(1.0, max(0.0, params.temperature)),
                top_k=params.top_k,
            )
        except anthropic.APITimeoutError as e:
            raise ProviderTimeoutError(self.id, self.timeout_seconds) from e
        except anthropic.APIStatusError as e:
            raise ProviderAPIError(self.id, str(e.message), status_code=e.status_code) from e
        except anthropic.APIConnectionError as e:
            raise ProviderAPIError(self.id, str(e)) from e

        content = response.content[0] if response.content else None
        text = getattr(content, "text", None)
        if not text:
            raise EmptyResponseError(self.id)

        return self.extract_word(text)

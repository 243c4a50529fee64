"""
OpenAI-compatible (Chat Completions API) providers

OpenAI and Kimi (Moonshot) share the same wire format and SDK client.
"""

import openai
from openai import AsyncOpenAI

from oneword_core.domain.constants import DEFAULT_TIMEOUT_SECONDS, KIMI, OPENAI, SYSTEM_PROMPT
from oneword_core.domain.entities import ProviderInfo
from oneword_core.domain.exceptions import (
    EmptyResponseError,
    ProviderAPIError,
    ProviderTimeoutError,
)
from oneword_core.domain.value_objects import SampleParams
from oneword_core.infrastructure.providers.base import BaseProvider


class OpenAICompatibleProvider(BaseProvider):
    """Provider speaking the OpenAI Chat Completions API"""

    catalogue: ProviderInfo = OPENAI

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Args:
            base_url: API endpoint (falls back to the catalogue endpoint if not specified)
            timeout_seconds: Request timeout in seconds (default: 30)
        """
        super().__init__(self.catalogue.models)
        self.base_url = base_url or self.catalogue.base_url
        self.timeout_seconds = timeout_seconds
        self._clients: dict[str, AsyncOpenAI] = {}

    def _client(self, key: str) -> AsyncOpenAI:
        client = self._clients.get(key)
        if client is None:
            client = AsyncOpenAI(
                api_key=key,
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
            self._clients[key] = client
        return client

    def _sampling_kwargs(self, params: SampleParams) -> dict:
        return {"temperature": params.temperature}

    async def sample(self, params: SampleParams, key: str) -> str:
        """
        Request a single-word completion

        Args:
            params: Sampling parameters
            key: API key

        Returns:
            The normalized word

        Raises:
            ProviderTimeoutError: If the SDK request times out
            ProviderAPIError: On HTTP or connection errors
            EmptyResponseError: If the response has no usable text
        """
        try:
            response = await self._client(key).chat.completions.create(
                model=params.model,
                max_tokens=params.max_tokens,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": params.stimulus},
                ],
                **self._sampling_kwargs(params),
            )
        except openai.APITimeoutError as e:
            raise ProviderTimeoutError(self.id, self.timeout_seconds) from e
        except openai.APIStatusError as e:
            raise ProviderAPIError(self.id, str(e.message), status_code=e.status_code) from e
        except openai.APIConnectionError as e:
            raise ProviderAPIError(self.id, str(e)) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise EmptyResponseError(self.id)

        return self.extract_word(content)


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI"""

    id = "openai"
    name = "OpenAI"
    catalogue = OPENAI

    def validate_key_format(self, key: str) -> bool:
        # OpenAI keys start with 'sk-' but not 'sk-ant-' (Anthropic) or 'sk-kimi-' (Kimi)
        if not key or not isinstance(key, str):
            return False
        return (
            key.startswith("sk-")
            and not key.startswith("sk-ant-")
            and not key.startswith("sk-kimi-")
            and len(key) > 40
        )

    def _sampling_kwargs(self, params: SampleParams) -> dict:
        # No top_k in the Chat Completions API; approximated with top_p
        top_p = min(1.0, max(0.1, params.top_k / 100))
        return {"temperature": params.temperature, "top_p": top_p}


class KimiProvider(OpenAICompatibleProvider):
    """Kimi (Moonshot), temperature only"""

    id = "kimi"
    name = "Kimi"
    catalogue = KIMI

    def validate_key_format(self, key: str) -> bool:
        if not key or not isinstance(key, str):
            return False
        return len(key) > 30 and (key.startswith("sk-kimi-") or key.startswith("sk-"))

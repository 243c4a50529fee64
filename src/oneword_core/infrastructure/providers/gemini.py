"""
Google Gemini provider (Google GenAI SDK, API key auth)
"""

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai.types import GenerateContentConfig, HttpOptions

from oneword_core.domain.constants import DEFAULT_TIMEOUT_SECONDS, GOOGLE, SYSTEM_PROMPT
from oneword_core.domain.exceptions import (
    EmptyResponseError,
    ProviderAPIError,
    ProviderTimeoutError,
)
from oneword_core.domain.value_objects import SampleParams
from oneword_core.infrastructure.providers.base import BaseProvider


class GeminiProvider(BaseProvider):
    """Provider using the Gemini API through google-genai"""

    id = "google"
    name = "Google"

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Args:
            timeout_seconds: Request timeout in seconds (default: 30)
        """
        super().__init__(GOOGLE.models)
        self.timeout_seconds = timeout_seconds
        self._clients: dict[str, genai.Client] = {}

    def validate_key_format(self, key: str) -> bool:
        # Google API keys are 39 chars starting with 'AIza'
        if not key or not isinstance(key, str):
            return False
        return key.startswith("AIza") and len(key) == 39

    def _client(self, key: str) -> genai.Client:
        client = self._clients.get(key)
        if client is None:
            # Timeout is configured via HttpOptions (milliseconds)
            client = genai.Client(
                api_key=key,
                http_options=HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
            self._clients[key] = client
        return client

    async def sample(self, params: SampleParams, key: str) -> str:
        """
        Request a single-word completion

        Raises:
            ProviderTimeoutError: If the HTTP request times out
            ProviderAPIError: On API or connection errors
            EmptyResponseError: If the response has no usable text
        """
        config = GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            temperature=params.temperature,
            top_k=params.top_k,
            max_output_tokens=params.max_tokens,
        )
        try:
            response = await self._client(key).aio.models.generate_content(
                model=params.model,
                contents=params.stimulus,
                config=config,
            )
        except genai_errors.APIError as e:
            raise ProviderAPIError(self.id, str(e.message or e), status_code=e.code) from e
        # The SDK lets transport errors through unwrapped
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(self.id, self.timeout_seconds) from e
        except httpx.HTTPError as e:
            raise ProviderAPIError(self.id, str(e)) from e

        text = response.text
        if not text:
            raise EmptyResponseError(self.id)

        return self.extract_word(text)

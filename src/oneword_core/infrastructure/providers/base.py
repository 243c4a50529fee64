"""
Provider base class

Defines the capability set shared by every provider: syntactic key check,
single-word sampling and cost estimation from the static price table.
"""

import re
from abc import ABC, abstractmethod

from oneword_core.domain.entities import ModelInfo
from oneword_core.domain.exceptions import EmptyResponseError
from oneword_core.domain.value_objects import CostParams, SampleParams

# Everything except word characters, whitespace, hyphens and apostrophes
_PUNCTUATION_RE = re.compile(r"[^\w\s'-]")


def extract_word(text: str | None, provider_id: str = "provider") -> str:
    """
    Normalize a raw completion into a single lowercase word.

    Args:
        text: Raw response text
        provider_id: Used in the error message

    Returns:
        The first whitespace-delimited token, punctuation stripped, lowercased

    Raises:
        EmptyResponseError: If no token remains
    """
    cleaned = _PUNCTUATION_RE.sub("", (text or "").strip())
    tokens = cleaned.split()
    if not tokens:
        raise EmptyResponseError(provider_id, text)
    return tokens[0].lower()


class BaseProvider(ABC):
    """Abstract base class for providers"""

    id: str = ""
    name: str = ""

    def __init__(self, models: tuple[ModelInfo, ...] = ()):
        self.models = tuple(models)
        self._pricing = {m.id: m.pricing for m in self.models}

    @abstractmethod
    def validate_key_format(self, key: str) -> bool:
        """Check the key's prefix/length (no network call is made)"""
        pass

    @abstractmethod
    async def sample(self, params: SampleParams, key: str) -> str:
        """Request a single-word completion and return the normalized word"""
        pass

    def estimate_cost(self, params: CostParams) -> float:
        """
        Estimate the cost of one call (USD).

        Unknown models cost 0; estimation is best effort.
        """
        pricing = self._pricing.get(params.model)
        if pricing is None:
            return 0.0

        input_cost = (params.input_tokens / 1000) * pricing.input_cost_per_1k
        output_cost = (params.output_tokens / 1000) * pricing.output_cost_per_1k
        return input_cost + output_cost

    def extract_word(self, text: str | None) -> str:
        return extract_word(text, self.id)

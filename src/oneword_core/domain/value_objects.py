"""
Domain Value Objects

Defines immutable data structures for sweep points, provider call parameters,
word frequencies and progress snapshots.
"""

import math
from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class ExperimentConfig:
    """One point of the sweep"""
    temperature: float
    top_k: int

    def to_dict(self) -> dict:
        return {"temperature": self.temperature, "top_k": self.top_k}

    @classmethod
    def from_dict(cls, data: dict) -> "ExperimentConfig":
        return cls(temperature=float(data["temperature"]), top_k=int(data["top_k"]))


@dataclass(frozen=True)
class SweepAxis:
    """
    One axis of a sweep specification

    mode="single" uses value; mode="range" uses minimum/maximum/steps.
    """
    mode: Literal["single", "range"] = "single"
    value: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    steps: int = 1

    @classmethod
    def single(cls, value: float) -> "SweepAxis":
        return cls(mode="single", value=value)

    @classmethod
    def range(cls, minimum: float, maximum: float, steps: int) -> "SweepAxis":
        return cls(mode="range", minimum=minimum, maximum=maximum, steps=steps)


@dataclass(frozen=True)
class ModelPricing:
    """Pricing (USD per 1k tokens)"""
    input_cost_per_1k: float
    output_cost_per_1k: float


@dataclass(frozen=True)
class SampleParams:
    """Parameters of one single-word completion call"""
    model: str
    stimulus: str
    temperature: float
    top_k: int
    max_tokens: int = 5


@dataclass(frozen=True)
class CostParams:
    """Token counts used for cost estimation"""
    model: str
    input_tokens: int
    output_tokens: int

    def __post_init__(self):
        if self.input_tokens < 0:
            raise ValueError("input_tokens must be non-negative")
        if self.output_tokens < 0:
            raise ValueError("output_tokens must be non-negative")


@dataclass(frozen=True)
class KeyValidationResult:
    """Result of a (syntactic) key check"""
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class WordFrequency:
    """Occurrences of one word within a group of samples"""
    word: str
    count: int
    percentage: float

    def to_dict(self) -> dict:
        return {"word": self.word, "count": self.count, "percentage": self.percentage}

    @classmethod
    def from_dict(cls, data: dict) -> "WordFrequency":
        return cls(word=data["word"], count=int(data["count"]), percentage=float(data["percentage"]))


@dataclass(frozen=True)
class ModelResult:
    """Word distribution of one model (or one model x config pair)"""
    model_id: str
    config: ExperimentConfig
    words: tuple[WordFrequency, ...]
    total_samples: int
    unique_words: int

    def to_dict(self) -> dict:
        return {
            "model_id": self.model_id,
            "config": self.config.to_dict(),
            "words": [w.to_dict() for w in self.words],
            "total_samples": self.total_samples,
            "unique_words": self.unique_words,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModelResult":
        return cls(
            model_id=data["model_id"],
            config=ExperimentConfig.from_dict(data["config"]),
            words=tuple(WordFrequency.from_dict(w) for w in data["words"]),
            total_samples=int(data["total_samples"]),
            unique_words=int(data["unique_words"]),
        )


@dataclass(frozen=True)
class RunProgress:
    """
    Snapshot of a running experiment

    estimated_time_remaining is in milliseconds and is math.inf until the
    first sample completes. recent_words is most-recent-first.
    """
    total_calls: int
    completed_calls: int = 0
    current_model: str = ""
    current_config: ExperimentConfig = field(default_factory=lambda: ExperimentConfig(0.0, 0))
    estimated_time_remaining: float = math.inf
    running_cost: float = 0.0
    recent_words: tuple[str, ...] = ()
    failed_calls: int = 0


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a community submission"""
    success: bool
    submission_id: str | None = None
    error: str | None = None

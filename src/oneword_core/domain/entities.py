"""
Domain Entities

Defines the experiment, its samples and the aggregated results report,
together with the static provider/model catalogue entries.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from oneword_core.domain.exceptions import InvalidTransitionError
from oneword_core.domain.value_objects import (
    ExperimentConfig,
    ModelPricing,
    ModelResult,
    WordFrequency,
)


class ExperimentStatus(str, Enum):
    """Experiment lifecycle status"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset({
    ExperimentStatus.COMPLETED,
    ExperimentStatus.FAILED,
    ExperimentStatus.CANCELLED,
})

_ALLOWED_TRANSITIONS = {
    ExperimentStatus.PENDING: frozenset({ExperimentStatus.RUNNING}),
    ExperimentStatus.RUNNING: _TERMINAL_STATUSES,
}


@dataclass(frozen=True)
class ModelInfo:
    """Catalogue entry for a model"""
    id: str
    provider_id: str
    name: str
    generation: str
    pricing: ModelPricing


@dataclass(frozen=True)
class ProviderInfo:
    """Catalogue entry for a provider"""
    id: str
    name: str
    base_url: str
    models: tuple[ModelInfo, ...]


@dataclass
class Experiment:
    """The unit of work: one stimulus sampled across models x configs x repetitions"""
    id: str
    stimulus: str
    selected_models: list[str]
    configs: list[ExperimentConfig]
    samples_per_config: int
    estimated_cost: float = 0.0
    status: ExperimentStatus = ExperimentStatus.PENDING
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    started_at: str | None = None
    completed_at: str | None = None
    actual_cost: float | None = None

    def __post_init__(self):
        # Ordered set semantics
        self.selected_models = list(dict.fromkeys(self.selected_models))
        self.status = ExperimentStatus(self.status)
        if not self.configs:
            raise ValueError("configs must not be empty")
        if self.samples_per_config < 1:
            raise ValueError("samples_per_config must be at least 1")

    @property
    def total_calls(self) -> int:
        return len(self.selected_models) * len(self.configs) * self.samples_per_config

    def transition(self, status: ExperimentStatus, timestamp: str | None = None) -> None:
        """
        Move to a new status, stamping started_at / completed_at.

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        status = ExperimentStatus(status)
        if status not in _ALLOWED_TRANSITIONS.get(self.status, frozenset()):
            raise InvalidTransitionError(self.id, self.status.value, status.value)

        timestamp = timestamp or datetime.now().isoformat()
        self.status = status
        if status is ExperimentStatus.RUNNING:
            self.started_at = timestamp
        else:
            self.completed_at = timestamp

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stimulus": self.stimulus,
            "selected_models": list(self.selected_models),
            "configs": [c.to_dict() for c in self.configs],
            "samples_per_config": self.samples_per_config,
            "total_calls": self.total_calls,
            "estimated_cost": self.estimated_cost,
            "actual_cost": self.actual_cost,
            "status": self.status.value,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Experiment":
        return cls(
            id=data["id"],
            stimulus=data["stimulus"],
            selected_models=list(data["selected_models"]),
            configs=[ExperimentConfig.from_dict(c) for c in data["configs"]],
            samples_per_config=int(data["samples_per_config"]),
            estimated_cost=float(data.get("estimated_cost") or 0.0),
            status=ExperimentStatus(data.get("status", "pending")),
            created_at=data.get("created_at") or datetime.now().isoformat(),
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
            actual_cost=data.get("actual_cost"),
        )


@dataclass(frozen=True)
class Sample:
    """One realized single-word completion"""
    id: str
    experiment_id: str
    model_id: str
    temperature: float
    top_k: int
    word: str
    latency_ms: int
    cost: float
    timestamp: str

    @property
    def config(self) -> ExperimentConfig:
        return ExperimentConfig(temperature=self.temperature, top_k=self.top_k)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "experiment_id": self.experiment_id,
            "model_id": self.model_id,
            "temperature": self.temperature,
            "top_k": self.top_k,
            "word": self.word,
            "latency_ms": self.latency_ms,
            "cost": self.cost,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Sample":
        return cls(
            id=str(data["id"]),
            experiment_id=str(data["experiment_id"]),
            model_id=str(data["model_id"]),
            temperature=float(data["temperature"]),
            top_k=int(data["top_k"]),
            word=str(data["word"]),
            latency_ms=int(data["latency_ms"]),
            cost=float(data["cost"]),
            timestamp=str(data["timestamp"]),
        )


@dataclass(frozen=True)
class Stimulus:
    """Reusable prompt in the stimulus library"""
    id: str
    text: str
    category: str
    is_built_in: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category,
            "is_built_in": self.is_built_in,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Stimulus":
        return cls(
            id=data["id"],
            text=data["text"],
            category=data.get("category", "custom"),
            is_built_in=bool(data.get("is_built_in", False)),
        )


@dataclass(frozen=True)
class ExperimentResults:
    """Aggregated report of an experiment's samples"""
    experiment_id: str
    total_samples: int
    unique_words: int
    top_words: tuple[WordFrequency, ...]
    entropy: float
    by_model: tuple[ModelResult, ...]
    by_temperature: dict[float, tuple[WordFrequency, ...]]
    by_model_config: tuple[ModelResult, ...] = ()

    def to_dict(self) -> dict:
        return {
            "experiment_id": self.experiment_id,
            "total_samples": self.total_samples,
            "unique_words": self.unique_words,
            "top_words": [w.to_dict() for w in self.top_words],
            "entropy": self.entropy,
            "by_model": [m.to_dict() for m in self.by_model],
            "by_temperature": {
                str(temperature): [w.to_dict() for w in words]
                for temperature, words in self.by_temperature.items()
            },
            "by_model_config": [m.to_dict() for m in self.by_model_config],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExperimentResults":
        # JSON object keys are strings; temperatures are restored to floats
        return cls(
            experiment_id=data["experiment_id"],
            total_samples=int(data["total_samples"]),
            unique_words=int(data["unique_words"]),
            top_words=tuple(WordFrequency.from_dict(w) for w in data["top_words"]),
            entropy=float(data["entropy"]),
            by_model=tuple(ModelResult.from_dict(m) for m in data["by_model"]),
            by_temperature={
                float(temperature): tuple(WordFrequency.from_dict(w) for w in words)
                for temperature, words in data["by_temperature"].items()
            },
            by_model_config=tuple(
                ModelResult.from_dict(m) for m in data.get("by_model_config", [])
            ),
        )

"""
Domain Layer

Defines constants, entities, value objects and exceptions that form the core
of the sampling engine. Has no dependencies on external libraries.
"""

from oneword_core.domain.constants import (
    BUILT_IN_STIMULI,
    DEFAULT_MODELS,
    PROVIDER_CATALOGUE,
    SYSTEM_PROMPT,
)
from oneword_core.domain.entities import (
    Experiment,
    ExperimentResults,
    ExperimentStatus,
    ModelInfo,
    ProviderInfo,
    Sample,
    Stimulus,
)
from oneword_core.domain.exceptions import (
    AlreadyRunningError,
    EmptyResponseError,
    InvalidRangeError,
    InvalidTransitionError,
    MissingCredentialsError,
    NotRunningError,
    OneWordError,
    ProviderAPIError,
    ProviderError,
    ProviderTimeoutError,
    UnknownProviderError,
)
from oneword_core.domain.value_objects import (
    CostParams,
    ExperimentConfig,
    KeyValidationResult,
    ModelPricing,
    ModelResult,
    RunProgress,
    SampleParams,
    SubmissionResult,
    SweepAxis,
    WordFrequency,
)

__all__ = [
    # constants
    "BUILT_IN_STIMULI",
    "DEFAULT_MODELS",
    "PROVIDER_CATALOGUE",
    "SYSTEM_PROMPT",
    # entities
    "Experiment",
    "ExperimentResults",
    "ExperimentStatus",
    "ModelInfo",
    "ProviderInfo",
    "Sample",
    "Stimulus",
    # exceptions
    "AlreadyRunningError",
    "EmptyResponseError",
    "InvalidRangeError",
    "InvalidTransitionError",
    "MissingCredentialsError",
    "NotRunningError",
    "OneWordError",
    "ProviderAPIError",
    "ProviderError",
    "ProviderTimeoutError",
    "UnknownProviderError",
    # value objects
    "CostParams",
    "ExperimentConfig",
    "KeyValidationResult",
    "ModelPricing",
    "ModelResult",
    "RunProgress",
    "SampleParams",
    "SubmissionResult",
    "SweepAxis",
    "WordFrequency",
]

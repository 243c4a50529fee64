"""
Experiment Builder

Creates pending experiments, estimates their cost from the price table
and creates custom stimuli for the library.
"""

import math
import uuid

from oneword_core.domain.constants import CHARS_PER_TOKEN, OUTPUT_TOKENS_PER_CALL
from oneword_core.domain.entities import Experiment, Stimulus
from oneword_core.domain.value_objects import CostParams, ExperimentConfig
from oneword_core.infrastructure.providers.registry import ProviderRegistry


def estimate_input_tokens(stimulus: str) -> int:
    """Rough token count of the stimulus (about 4 characters per token)"""
    return math.ceil(len(stimulus) / CHARS_PER_TOKEN)


def estimate_call_cost(registry: ProviderRegistry, model_id: str, stimulus: str) -> float:
    """
    Estimated cost of one call to model_id (0 for unknown models).
    """
    provider_id = registry.provider_for_model(model_id)
    if provider_id is None:
        return 0.0
    return registry.estimate_cost(
        provider_id,
        CostParams(
            model=model_id,
            input_tokens=estimate_input_tokens(stimulus),
            output_tokens=OUTPUT_TOKENS_PER_CALL,
        ),
    )


def estimate_experiment_cost(
    registry: ProviderRegistry,
    stimulus: str,
    models: list[str],
    configs: list[ExperimentConfig],
    samples_per_config: int,
) -> float:
    """
    Estimated total cost of an experiment.

    Args:
        registry: Provider registry (price tables)
        stimulus: Prompt text
        models: Selected model ids
        configs: Sweep configurations
        samples_per_config: Repetitions per model x config

    Returns:
        float: USD
    """
    calls_per_model = len(configs) * samples_per_config
    return sum(
        estimate_call_cost(registry, model_id, stimulus) * calls_per_model
        for model_id in dict.fromkeys(models)
    )


def create_experiment(
    registry: ProviderRegistry,
    stimulus: str,
    models: list[str],
    configs: list[ExperimentConfig],
    samples_per_config: int,
) -> Experiment:
    """
    Create a pending experiment.

    Raises:
        ValueError: If the stimulus is blank, or models/configs are empty, or
            samples_per_config < 1
    """
    if not stimulus.strip():
        raise ValueError("stimulus must not be empty")
    if not models:
        raise ValueError("at least one model must be selected")

    return Experiment(
        id=f"exp-{uuid.uuid4()}",
        stimulus=stimulus,
        selected_models=list(models),
        configs=list(configs),
        samples_per_config=samples_per_config,
        estimated_cost=estimate_experiment_cost(
            registry, stimulus, models, configs, samples_per_config
        ),
    )


def create_stimulus(text: str, category: str = "custom") -> Stimulus:
    """
    Create a user stimulus for the library.

    Raises:
        ValueError: If the text is blank
    """
    text = text.strip()
    if not text:
        raise ValueError("stimulus must not be empty")
    return Stimulus(id=f"stim-{uuid.uuid4()}", text=text, category=category or "custom")

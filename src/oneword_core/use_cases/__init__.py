"""
Use Cases Layer

Sweep expansion, experiment creation, execution and aggregation.
"""

from oneword_core.use_cases.aggregation import (
    aggregate,
    results_to_dataframe,
    samples_to_dataframe,
    shannon_entropy,
    word_frequencies,
)
from oneword_core.use_cases.config_expander import (
    axis_values,
    expand_configs,
    generate_range,
)
from oneword_core.use_cases.experiment_builder import (
    create_experiment,
    create_stimulus,
    estimate_call_cost,
    estimate_experiment_cost,
)
from oneword_core.use_cases.experiment_runner import ExperimentRunner

__all__ = [
    # aggregation
    "aggregate",
    "results_to_dataframe",
    "samples_to_dataframe",
    "shannon_entropy",
    "word_frequencies",
    # config_expander
    "axis_values",
    "expand_configs",
    "generate_range",
    # experiment_builder
    "create_experiment",
    "create_stimulus",
    "estimate_call_cost",
    "estimate_experiment_cost",
    # experiment_runner
    "ExperimentRunner",
]

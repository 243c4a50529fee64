"""
Results Aggregation

Reduces a sample set into word frequency tables, Shannon entropy and
per-model / per-temperature breakdowns, plus tabular (pandas) exports.
"""

import math
from collections import Counter

import pandas as pd

from oneword_core.domain.entities import Experiment, ExperimentResults, Sample
from oneword_core.domain.value_objects import ExperimentConfig, ModelResult, WordFrequency
from oneword_core.infrastructure.storage import SAMPLE_COLUMNS


def word_frequencies(samples: list[Sample]) -> tuple[WordFrequency, ...]:
    """
    Count words and sort by count descending.

    Ties keep first-seen order (Counter preserves insertion order and
    sorted() is stable), so identical input gives identical output.
    """
    total = len(samples)
    if total == 0:
        return ()
    counts = Counter(s.word for s in samples)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return tuple(
        WordFrequency(word=word, count=count, percentage=count / total * 100)
        for word, count in ranked
    )


def shannon_entropy(frequencies: tuple[WordFrequency, ...] | list[WordFrequency], total: int) -> float:
    """
    Shannon entropy in bits: -sum(p * log2(p)), p = count / total.

    Zero-probability terms contribute nothing.
    """
    if total <= 0:
        return 0.0
    entropy = 0.0
    for freq in frequencies:
        p = freq.count / total
        if p > 0:
            entropy -= p * math.log2(p)
    return entropy


def _group_by(samples: list[Sample], key) -> dict:
    groups: dict = {}
    for sample in samples:
        groups.setdefault(key(sample), []).append(sample)
    return groups


def _model_result(model_id: str, config: ExperimentConfig, samples: list[Sample]) -> ModelResult:
    words = word_frequencies(samples)
    return ModelResult(
        model_id=model_id,
        config=config,
        words=words,
        total_samples=len(samples),
        unique_words=len(words),
    )


def aggregate(experiment: Experiment, samples: list[Sample]) -> ExperimentResults:
    """
    Aggregate an experiment's samples.

    by_model reports the config of each model's first sample; when a model was
    swept over several configs, by_model_config holds one entry per
    (model, config) pair.

    Args:
        experiment: The experiment the samples belong to
        samples: Collected samples (possibly empty)

    Returns:
        ExperimentResults
    """
    samples = list(samples)
    top_words = word_frequencies(samples)

    by_model = tuple(
        _model_result(model_id, group[0].config, group)
        for model_id, group in _group_by(samples, lambda s: s.model_id).items()
    )
    by_model_config = tuple(
        _model_result(model_id, config, group)
        for (model_id, config), group in _group_by(
            samples, lambda s: (s.model_id, s.config)
        ).items()
    )
    by_temperature = {
        temperature: word_frequencies(group)
        for temperature, group in _group_by(samples, lambda s: s.temperature).items()
    }

    return ExperimentResults(
        experiment_id=experiment.id,
        total_samples=len(samples),
        unique_words=len(top_words),
        top_words=top_words,
        entropy=shannon_entropy(top_words, len(samples)),
        by_model=by_model,
        by_temperature=by_temperature,
        by_model_config=by_model_config,
    )


def samples_to_dataframe(samples: list[Sample]) -> pd.DataFrame:
    """One row per sample"""
    return pd.DataFrame([s.to_dict() for s in samples], columns=SAMPLE_COLUMNS)


def results_to_dataframe(results: ExperimentResults) -> pd.DataFrame:
    """
    Long-format word table: one row per (scope, word).

    scope is "overall", "model", "model_config" or "temperature".
    """
    rows = []
    for freq in results.top_words:
        rows.append({"scope": "overall", "model_id": None, "temperature": None, "top_k": None,
                     **freq.to_dict()})
    for model_result in results.by_model:
        for freq in model_result.words:
            rows.append({"scope": "model", "model_id": model_result.model_id,
                         "temperature": None, "top_k": None, **freq.to_dict()})
    for model_result in results.by_model_config:
        for freq in model_result.words:
            rows.append({"scope": "model_config", "model_id": model_result.model_id,
                         "temperature": model_result.config.temperature,
                         "top_k": model_result.config.top_k, **freq.to_dict()})
    for temperature, words in results.by_temperature.items():
        for freq in words:
            rows.append({"scope": "temperature", "model_id": None, "temperature": temperature,
                         "top_k": None, **freq.to_dict()})

    return pd.DataFrame(
        rows,
        columns=["scope", "model_id", "temperature", "top_k", "word", "count", "percentage"],
    )

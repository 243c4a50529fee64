"""Tests for results aggregation"""

import math

import pytest

from oneword_core.domain.entities import Experiment, Sample
from oneword_core.domain.value_objects import ExperimentConfig, WordFrequency
from oneword_core.use_cases.aggregation import (
    aggregate,
    results_to_dataframe,
    samples_to_dataframe,
    shannon_entropy,
    word_frequencies,
)


def _experiment(models=("model-a",), configs=(ExperimentConfig(0.7, 40),), samples_per_config=10) -> Experiment:
    return Experiment(
        id="exp-1",
        stimulus="Do you agree?",
        selected_models=list(models),
        configs=list(configs),
        samples_per_config=samples_per_config,
    )


def _samples(model_id: str, words: list[str], temperature: float = 0.7, top_k: int = 40) -> list[Sample]:
    return [
        Sample(
            id=f"{model_id}-{temperature}-{top_k}-{i}",
            experiment_id="exp-1",
            model_id=model_id,
            temperature=temperature,
            top_k=top_k,
            word=word,
            latency_ms=100,
            cost=0.001,
            timestamp="2026-01-01T00:00:00",
        )
        for i, word in enumerate(words)
    ]


class TestWordFrequencies:
    def test_sorted_by_count_descending(self):
        samples = _samples("m", ["b", "a", "a", "c", "a", "b"])
        freqs = word_frequencies(samples)
        assert [(f.word, f.count) for f in freqs] == [("a", 3), ("b", 2), ("c", 1)]

    def test_ties_keep_first_seen_order(self):
        samples = _samples("m", ["grey", "blue", "blue", "grey"])
        assert [f.word for f in word_frequencies(samples)] == ["grey", "blue"]

    def test_percentages_sum_to_100(self):
        samples = _samples("m", ["a", "b", "c"])
        assert sum(f.percentage for f in word_frequencies(samples)) == pytest.approx(100.0)

    def test_empty(self):
        assert word_frequencies([]) == ()


class TestShannonEntropy:
    def test_single_word_is_zero(self):
        assert shannon_entropy([WordFrequency("yes", 10, 100.0)], 10) == 0.0

    def test_uniform_distribution(self):
        freqs = [WordFrequency(str(i), 1, 25.0) for i in range(4)]
        assert shannon_entropy(freqs, 4) == pytest.approx(2.0)

    def test_bounded_by_log2_unique(self):
        samples = _samples("m", ["a", "a", "a", "b", "c"])
        freqs = word_frequencies(samples)
        entropy = shannon_entropy(freqs, 5)
        assert 0.0 <= entropy <= math.log2(len(freqs))

    def test_zero_total(self):
        assert shannon_entropy([], 0) == 0.0


class TestAggregate:
    def test_single_word_run(self):
        results = aggregate(_experiment(), _samples("model-a", ["yes"] * 10))

        assert results.total_samples == 10
        assert results.unique_words == 1
        assert results.top_words == (WordFrequency("yes", 10, 100.0),)
        assert results.entropy == 0.0

    def test_two_models_one_word_each(self):
        experiment = _experiment(models=("model-a", "model-b"), samples_per_config=5)
        samples = _samples("model-a", ["a"] * 5) + _samples("model-b", ["b"] * 5)

        results = aggregate(experiment, samples)

        assert [m.model_id for m in results.by_model] == ["model-a", "model-b"]
        for model_result in results.by_model:
            assert model_result.total_samples == 5
            assert model_result.unique_words == 1
        assert [(w.word, w.count, w.percentage) for w in results.top_words] == [
            ("a", 5, 50.0),
            ("b", 5, 50.0),
        ]
        assert results.entropy == pytest.approx(1.0)

    def test_empty_sample_set(self):
        results = aggregate(_experiment(), [])

        assert results.experiment_id == "exp-1"
        assert results.total_samples == 0
        assert results.unique_words == 0
        assert results.top_words == ()
        assert results.entropy == 0.0
        assert results.by_model == ()
        assert results.by_temperature == {}

    def test_counts_sum_to_total(self):
        samples = (
            _samples("model-a", ["blue", "grey", "blue"], temperature=0.0)
            + _samples("model-a", ["red", "blue"], temperature=1.0)
            + _samples("model-b", ["blue"], temperature=1.0)
        )
        results = aggregate(_experiment(models=("model-a", "model-b")), samples)

        assert sum(w.count for w in results.top_words) == results.total_samples == 6
        assert sum(m.total_samples for m in results.by_model) == 6
        assert sum(m.total_samples for m in results.by_model_config) == 6
        assert sum(
            w.count for words in results.by_temperature.values() for w in words
        ) == 6
        for model_result in results.by_model:
            assert sum(w.count for w in model_result.words) == model_result.total_samples

    def test_by_temperature_groups(self):
        samples = _samples("m", ["cold"] * 2, temperature=0.0) + _samples("m", ["hot"] * 3, temperature=1.0)
        results = aggregate(_experiment(models=("m",)), samples)

        assert set(results.by_temperature) == {0.0, 1.0}
        assert results.by_temperature[0.0] == (WordFrequency("cold", 2, 100.0),)
        assert results.by_temperature[1.0] == (WordFrequency("hot", 3, 100.0),)

    def test_by_model_reports_first_config(self):
        configs = (ExperimentConfig(0.0, 40), ExperimentConfig(1.0, 40))
        samples = _samples("m", ["a"], temperature=0.0) + _samples("m", ["b"], temperature=1.0)
        results = aggregate(_experiment(models=("m",), configs=configs), samples)

        assert len(results.by_model) == 1
        assert results.by_model[0].config == ExperimentConfig(0.0, 40)
        assert results.by_model[0].total_samples == 2
        assert [m.config for m in results.by_model_config] == list(configs)

    def test_idempotent(self):
        experiment = _experiment(models=("a", "b"))
        samples = _samples("a", ["x", "y", "x"]) + _samples("b", ["y", "z"])
        assert aggregate(experiment, samples) == aggregate(experiment, samples)


class TestDataFrames:
    def test_samples_to_dataframe(self):
        df = samples_to_dataframe(_samples("m", ["a", "b"]))
        assert list(df["word"]) == ["a", "b"]
        assert "latency_ms" in df.columns

    def test_samples_to_dataframe_empty_has_columns(self):
        df = samples_to_dataframe([])
        assert df.empty
        assert "word" in df.columns

    def test_results_to_dataframe_scopes(self):
        results = aggregate(_experiment(models=("m",)), _samples("m", ["a", "b", "a"]))
        df = results_to_dataframe(results)

        assert set(df["scope"]) == {"overall", "model", "model_config", "temperature"}
        overall = df[df["scope"] == "overall"]
        assert list(overall["word"]) == ["a", "b"]
        assert list(overall["count"]) == [2, 1]

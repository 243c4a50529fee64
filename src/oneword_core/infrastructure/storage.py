"""
Storage

Persistence collaborators for experiments, samples, results and the
stimulus library. InMemoryStorage keeps everything in dictionaries;
FileStorage writes experiments/results as JSON and appends samples to one
CSV per experiment.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Protocol

import pandas as pd

from oneword_core.domain.constants import BUILT_IN_STIMULI
from oneword_core.domain.entities import (
    Experiment,
    ExperimentResults,
    ExperimentStatus,
    Sample,
    Stimulus,
)

logger = logging.getLogger(__name__)

SAMPLE_COLUMNS = [
    "id",
    "experiment_id",
    "model_id",
    "temperature",
    "top_k",
    "word",
    "latency_ms",
    "cost",
    "timestamp",
]


class ExperimentStorage(Protocol):
    """Persistence interface used by the experiment runner"""

    async def save_sample(self, sample: Sample) -> None: ...

    async def save_experiment(self, experiment: Experiment) -> None: ...

    async def load_experiment(self, experiment_id: str) -> Experiment | None: ...

    async def save_results(self, results: ExperimentResults) -> None: ...

    async def load_results(self, experiment_id: str) -> ExperimentResults | None: ...


class InMemoryStorage:
    """Dictionary-backed storage (tests, one-off CLI runs)"""

    def __init__(self) -> None:
        self._experiments: dict[str, dict] = {}
        self._samples: dict[str, list[Sample]] = {}
        self._results: dict[str, ExperimentResults] = {}
        self._stimuli: dict[str, Stimulus] = {}

    async def save_experiment(self, experiment: Experiment) -> None:
        # Stored as a dict so later in-place mutation is not visible
        self._experiments[experiment.id] = experiment.to_dict()

    async def load_experiment(self, experiment_id: str) -> Experiment | None:
        data = self._experiments.get(experiment_id)
        return Experiment.from_dict(data) if data else None

    async def list_experiments(self, status: ExperimentStatus | None = None) -> list[Experiment]:
        experiments = [Experiment.from_dict(d) for d in self._experiments.values()]
        if status is not None:
            experiments = [e for e in experiments if e.status == status]
        return sorted(experiments, key=lambda e: e.created_at, reverse=True)

    async def delete_experiment(self, experiment_id: str) -> None:
        self._experiments.pop(experiment_id, None)
        self._samples.pop(experiment_id, None)
        self._results.pop(experiment_id, None)

    async def save_sample(self, sample: Sample) -> None:
        self._samples.setdefault(sample.experiment_id, []).append(sample)

    async def get_samples_by_experiment(self, experiment_id: str) -> list[Sample]:
        return list(self._samples.get(experiment_id, []))

    async def get_samples_by_model(self, model_id: str) -> list[Sample]:
        return [s for samples in self._samples.values() for s in samples if s.model_id == model_id]

    async def save_results(self, results: ExperimentResults) -> None:
        self._results[results.experiment_id] = results

    async def load_results(self, experiment_id: str) -> ExperimentResults | None:
        return self._results.get(experiment_id)

    # ---- stimuli -----------------------------------------------------

    async def list_stimuli(self, category: str | None = None) -> list[Stimulus]:
        return _with_built_ins(self._stimuli.values(), category)

    async def save_stimulus(self, stimulus: Stimulus) -> None:
        _check_not_built_in(stimulus.id)
        self._stimuli[stimulus.id] = stimulus

    async def delete_stimulus(self, stimulus_id: str) -> None:
        self._stimuli.pop(stimulus_id, None)


class FileStorage:
    """
    Directory-backed storage

    Layout:
        <data_dir>/experiments/<id>.json
        <data_dir>/results/<id>.json
        <data_dir>/samples/<id>.csv
        <data_dir>/stimuli.json
    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self.experiments_dir = self.data_dir / "experiments"
        self.results_dir = self.data_dir / "results"
        self.samples_dir = self.data_dir / "samples"
        self.stimuli_path = self.data_dir / "stimuli.json"

    # ---- experiments -------------------------------------------------

    async def save_experiment(self, experiment: Experiment) -> None:
        path = self.experiments_dir / f"{experiment.id}.json"
        await asyncio.to_thread(_write_json, path, experiment.to_dict())

    async def load_experiment(self, experiment_id: str) -> Experiment | None:
        data = await asyncio.to_thread(_read_json, self.experiments_dir / f"{experiment_id}.json")
        return Experiment.from_dict(data) if data else None

    async def list_experiments(self, status: ExperimentStatus | None = None) -> list[Experiment]:
        def _load_all() -> list[Experiment]:
            if not self.experiments_dir.exists():
                return []
            return [
                Experiment.from_dict(_read_json(path))
                for path in sorted(self.experiments_dir.glob("*.json"))
            ]

        experiments = await asyncio.to_thread(_load_all)
        if status is not None:
            experiments = [e for e in experiments if e.status == status]
        return sorted(experiments, key=lambda e: e.created_at, reverse=True)

    async def delete_experiment(self, experiment_id: str) -> None:
        def _delete() -> None:
            for path in (
                self.experiments_dir / f"{experiment_id}.json",
                self.results_dir / f"{experiment_id}.json",
                self.samples_dir / f"{experiment_id}.csv",
            ):
                path.unlink(missing_ok=True)

        await asyncio.to_thread(_delete)

    # ---- samples -----------------------------------------------------

    async def save_sample(self, sample: Sample) -> None:
        path = self.samples_dir / f"{sample.experiment_id}.csv"
        await asyncio.to_thread(_append_sample_row, path, sample)

    async def get_samples_by_experiment(self, experiment_id: str) -> list[Sample]:
        return await asyncio.to_thread(_read_samples, self.samples_dir / f"{experiment_id}.csv")

    async def get_samples_by_model(self, model_id: str) -> list[Sample]:
        def _scan() -> list[Sample]:
            if not self.samples_dir.exists():
                return []
            samples = []
            for path in sorted(self.samples_dir.glob("*.csv")):
                samples.extend(s for s in _read_samples(path) if s.model_id == model_id)
            return samples

        return await asyncio.to_thread(_scan)

    # ---- results -----------------------------------------------------

    async def save_results(self, results: ExperimentResults) -> None:
        path = self.results_dir / f"{results.experiment_id}.json"
        await asyncio.to_thread(_write_json, path, results.to_dict())

    async def load_results(self, experiment_id: str) -> ExperimentResults | None:
        data = await asyncio.to_thread(_read_json, self.results_dir / f"{experiment_id}.json")
        return ExperimentResults.from_dict(data) if data else None

    # ---- stimuli -----------------------------------------------------

    async def list_stimuli(self, category: str | None = None) -> list[Stimulus]:
        saved = await asyncio.to_thread(self._read_stimuli)
        return _with_built_ins(saved.values(), category)

    async def save_stimulus(self, stimulus: Stimulus) -> None:
        _check_not_built_in(stimulus.id)

        def _save() -> None:
            saved = self._read_stimuli()
            saved[stimulus.id] = stimulus
            self._write_stimuli(saved)

        await asyncio.to_thread(_save)

    async def delete_stimulus(self, stimulus_id: str) -> None:
        def _delete() -> None:
            saved = self._read_stimuli()
            if saved.pop(stimulus_id, None) is not None:
                self._write_stimuli(saved)

        await asyncio.to_thread(_delete)

    def _read_stimuli(self) -> dict[str, Stimulus]:
        data = _read_json(self.stimuli_path) or {}
        stimuli = (Stimulus.from_dict(d) for d in data.get("stimuli", []))
        return {s.id: s for s in stimuli}

    def _write_stimuli(self, stimuli: dict[str, Stimulus]) -> None:
        _write_json(self.stimuli_path, {"stimuli": [s.to_dict() for s in stimuli.values()]})


_BUILT_IN_IDS = frozenset(s.id for s in BUILT_IN_STIMULI)


def _with_built_ins(saved, category: str | None) -> list[Stimulus]:
    """Built-in stimuli first, then saved ones in insertion order"""
    stimuli = [*BUILT_IN_STIMULI, *saved]
    if category is not None:
        stimuli = [s for s in stimuli if s.category == category]
    return stimuli


def _check_not_built_in(stimulus_id: str) -> None:
    if stimulus_id in _BUILT_IN_IDS:
        raise ValueError(f"Stimulus id is reserved for a built-in: {stimulus_id}")


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".json.tmp")
    tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp_path.replace(path)


def _read_json(path: Path) -> dict | None:
    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))


def _append_sample_row(path: Path, sample: Sample) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    row = pd.DataFrame([sample.to_dict()], columns=SAMPLE_COLUMNS)
    row.to_csv(path, mode="a", header=not path.exists(), index=False)


def _read_samples(path: Path) -> list[Sample]:
    if not path.exists():
        return []
    try:
        # Words such as "null" or "nan" must stay strings
        df = pd.read_csv(
            path,
            dtype={"id": str, "experiment_id": str, "model_id": str, "word": str, "timestamp": str},
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError:
        return []
    return [Sample.from_dict(record) for record in df.to_dict("records")]

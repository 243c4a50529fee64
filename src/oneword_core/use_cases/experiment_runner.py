"""
Experiment Runner

Drives experiments through their lifecycle: expands models x configs x
repetitions into provider calls, records samples, tracks live progress and
produces the results report when the experiment completes, fails or is
cancelled.

Each running experiment is owned by one asyncio task. The only shared
structure is the id -> run state map; progress leaves the runner as frozen
RunProgress snapshots.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from oneword_core.config import RunnerConfig
from oneword_core.domain.constants import DEFAULT_MAX_TOKENS, RECENT_WORDS_LIMIT
from oneword_core.domain.entities import (
    Experiment,
    ExperimentResults,
    ExperimentStatus,
    ModelInfo,
    Sample,
)
from oneword_core.domain.exceptions import (
    AlreadyRunningError,
    InvalidTransitionError,
    MissingCredentialsError,
    NotRunningError,
)
from oneword_core.domain.value_objects import ExperimentConfig, RunProgress, SampleParams
from oneword_core.infrastructure.community import CommunityReporter
from oneword_core.infrastructure.providers.registry import ProviderRegistry
from oneword_core.infrastructure.storage import ExperimentStorage
from oneword_core.use_cases.aggregation import aggregate
from oneword_core.use_cases.experiment_builder import estimate_call_cost

logger = logging.getLogger(__name__)

ProgressListener = Callable[[str, RunProgress], None]


@dataclass
class _RunState:
    """Mutable state of one running experiment (owned by its task)"""
    experiment: Experiment
    credentials: dict[str, str]
    started_at: float = field(default_factory=time.monotonic)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    samples: list[Sample] = field(default_factory=list)
    completed_calls: int = 0
    failed_calls: int = 0
    current_model: str = ""
    current_config: ExperimentConfig = field(default_factory=lambda: ExperimentConfig(0.0, 0))
    running_cost: float = 0.0
    recent_words: deque = field(default_factory=lambda: deque(maxlen=RECENT_WORDS_LIMIT))
    task: asyncio.Task | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def record(self, sample: Sample) -> None:
        self.samples.append(sample)
        self.completed_calls += 1
        self.running_cost += sample.cost
        self.recent_words.appendleft(sample.word)

    def estimated_time_remaining(self) -> float:
        if self.completed_calls == 0:
            return math.inf
        elapsed_ms = (time.monotonic() - self.started_at) * 1000
        remaining = self.experiment.total_calls - self.completed_calls
        return remaining * (elapsed_ms / self.completed_calls)

    def snapshot(self) -> RunProgress:
        return RunProgress(
            total_calls=self.experiment.total_calls,
            completed_calls=self.completed_calls,
            current_model=self.current_model,
            current_config=self.current_config,
            estimated_time_remaining=self.estimated_time_remaining(),
            running_cost=self.running_cost,
            recent_words=tuple(self.recent_words),
            failed_calls=self.failed_calls,
        )


class ExperimentRunner:
    """Runs experiments concurrently, one asyncio task per experiment"""

    def __init__(
        self,
        registry: ProviderRegistry,
        storage: ExperimentStorage,
        community: CommunityReporter | None = None,
        config: RunnerConfig | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        """
        Args:
            registry: Provider registry used for sampling and cost estimation
            storage: Persistence for experiments, samples and results
            community: Optional community reporter (completed experiments only)
            config: Runner settings (pacing delay)
            max_tokens: Completion token limit sent with each call
        """
        self.registry = registry
        self.storage = storage
        self.community = community
        self.config = config or RunnerConfig()
        self.max_tokens = max_tokens
        self._runs: dict[str, _RunState] = {}
        self._listeners: list[ProgressListener] = []
        self._background: set[asyncio.Task] = set()

    # ==================== Control ====================

    async def start(self, experiment: Experiment, credentials: dict[str, str]) -> None:
        """
        Start an experiment and return without waiting for it to finish.

        Args:
            experiment: A pending experiment
            credentials: provider id -> API key

        Raises:
            AlreadyRunningError: If an experiment with this id is running
            InvalidTransitionError: If the experiment is not pending
            MissingCredentialsError: If a selected model's provider has no key
        """
        if experiment.id in self._runs:
            raise AlreadyRunningError(experiment.id)
        if experiment.status is not ExperimentStatus.PENDING:
            raise InvalidTransitionError(
                experiment.id, experiment.status.value, ExperimentStatus.RUNNING.value
            )

        missing = self.missing_credentials(experiment, credentials)
        if missing:
            raise MissingCredentialsError(missing)

        state = _RunState(experiment=experiment, credentials=dict(credentials))
        self._runs[experiment.id] = state
        experiment.transition(ExperimentStatus.RUNNING)
        state.task = asyncio.create_task(
            self._execute(state), name=f"experiment-{experiment.id}"
        )
        logger.info(
            "Experiment %s started: %d models, %d configs, %d calls",
            experiment.id, len(experiment.selected_models),
            len(experiment.configs), experiment.total_calls,
        )

    async def abort(self, experiment_id: str) -> None:
        """
        Cancel a running experiment and wait until it has been finalized.

        An in-flight provider call is allowed to finish (or time out) first.

        Raises:
            NotRunningError: If the id is not running
        """
        state = self._runs.get(experiment_id)
        if state is None:
            raise NotRunningError(experiment_id)

        logger.info("Aborting experiment %s", experiment_id)
        state.cancel_event.set()
        if state.task is not None:
            await asyncio.wait({state.task})

    async def wait(self, experiment_id: str) -> None:
        """Wait for a running experiment to reach a terminal state (no-op if not running)"""
        state = self._runs.get(experiment_id)
        if state is not None and state.task is not None:
            await asyncio.wait({state.task})

    async def close(self) -> None:
        """Abort running experiments and wait for background submissions"""
        for experiment_id in self.list_running():
            with contextlib.suppress(NotRunningError):
                await self.abort(experiment_id)
        if self._background:
            await asyncio.wait(set(self._background))

    # ==================== Queries ====================

    def get_progress(self, experiment_id: str) -> RunProgress | None:
        state = self._runs.get(experiment_id)
        return state.snapshot() if state else None

    def is_running(self, experiment_id: str) -> bool:
        return experiment_id in self._runs

    def list_running(self) -> list[str]:
        return list(self._runs)

    def add_listener(self, listener: ProgressListener) -> None:
        """Register a callback receiving (experiment_id, RunProgress) after every sample"""
        self._listeners.append(listener)

    def missing_credentials(self, experiment: Experiment, credentials: dict[str, str]) -> list[str]:
        """Provider ids required by the selected models that have no key"""
        required: list[str] = []
        for model_id in experiment.selected_models:
            provider_id = self.registry.provider_for_model(model_id)
            if provider_id is not None and provider_id not in required:
                required.append(provider_id)
        return [p for p in required if not credentials.get(p)]

    # ==================== Execution ====================

    async def _execute(self, state: _RunState) -> None:
        experiment = state.experiment
        try:
            await self._save_experiment(experiment)
            await self._run_models(state)
        except asyncio.CancelledError:
            await self._finalize(state, ExperimentStatus.CANCELLED)
            raise
        except Exception:
            logger.exception("Experiment %s failed", experiment.id)
            await self._finalize(state, ExperimentStatus.FAILED)
        else:
            status = ExperimentStatus.CANCELLED if state.cancelled else ExperimentStatus.COMPLETED
            await self._finalize(state, status)

    async def _run_models(self, state: _RunState) -> None:
        experiment = state.experiment
        for model_id in experiment.selected_models:
            if state.cancelled:
                break

            model = self.registry.find_model(model_id)
            if model is None:
                logger.error("Model not found: %s", model_id)
                continue

            state.current_model = model_id
            for config in experiment.configs:
                if state.cancelled:
                    break
                state.current_config = config
                await self._run_config(state, model, config)

    async def _run_config(self, state: _RunState, model: ModelInfo, config: ExperimentConfig) -> None:
        experiment = state.experiment
        key = state.credentials[model.provider_id]
        params = SampleParams(
            model=model.id,
            stimulus=experiment.stimulus,
            temperature=config.temperature,
            top_k=config.top_k,
            max_tokens=self.max_tokens,
        )

        for repetition in range(experiment.samples_per_config):
            if repetition > 0:
                await self._pace(state)
            if state.cancelled:
                return

            logger.debug(
                "Sampling %s with temperature=%s, top_k=%s (%d/%d)",
                model.id, config.temperature, config.top_k,
                repetition + 1, experiment.samples_per_config,
            )
            call_started = time.monotonic()
            try:
                word = await self.registry.sample(model.provider_id, params, key)
            except Exception as e:
                # One bad call does not invalidate the sweep; no retry
                state.failed_calls += 1
                logger.warning(
                    "Sample failed for %s (temperature=%s, top_k=%s): %s",
                    model.id, config.temperature, config.top_k, e,
                )
                continue
            latency_ms = int((time.monotonic() - call_started) * 1000)

            sample = Sample(
                id=f"{experiment.id}-{model.id}-{repetition}-{uuid.uuid4().hex[:8]}",
                experiment_id=experiment.id,
                model_id=model.id,
                temperature=config.temperature,
                top_k=config.top_k,
                word=word,
                latency_ms=latency_ms,
                cost=estimate_call_cost(self.registry, model.id, experiment.stimulus),
                timestamp=datetime.now().isoformat(),
            )
            await self._save_sample(sample)
            state.record(sample)
            self._notify(experiment.id, state.snapshot())

    async def _pace(self, state: _RunState) -> None:
        """Fixed delay between calls, cut short by cancellation"""
        delay = self.config.pacing_delay_seconds
        if delay <= 0:
            return
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(state.cancel_event.wait(), timeout=delay)

    def _notify(self, experiment_id: str, progress: RunProgress) -> None:
        logger.debug(
            "Experiment %s progress: %d/%d",
            experiment_id, progress.completed_calls, progress.total_calls,
        )
        for listener in self._listeners:
            try:
                listener(experiment_id, progress)
            except Exception:
                logger.exception("Progress listener failed for %s", experiment_id)

    # ==================== Finalization ====================

    async def _finalize(self, state: _RunState, status: ExperimentStatus) -> None:
        experiment = state.experiment
        try:
            try:
                results = aggregate(experiment, state.samples)
            except Exception:
                logger.exception("Aggregation failed for experiment %s", experiment.id)
                results = None
                status = ExperimentStatus.FAILED

            experiment.transition(status)
            experiment.actual_cost = sum(s.cost for s in state.samples)
            await self._save_experiment(experiment)
            if results is not None:
                await self._save_results(results)

            logger.info(
                "Experiment %s %s: %d/%d samples, %d failed calls, cost $%.4f",
                experiment.id, status.value, len(state.samples),
                experiment.total_calls, state.failed_calls, experiment.actual_cost,
            )

            if status is ExperimentStatus.COMPLETED and results is not None:
                self._schedule_submission(experiment, results)
        finally:
            self._runs.pop(experiment.id, None)

    def _schedule_submission(self, experiment: Experiment, results: ExperimentResults) -> None:
        if self.community is None:
            return
        task = asyncio.create_task(
            self._submit(experiment, results), name=f"community-{experiment.id}"
        )
        # Keep a reference until done; never awaited by the main flow
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _submit(self, experiment: Experiment, results: ExperimentResults) -> None:
        try:
            await self.community.submit(experiment, results)
        except Exception:
            logger.exception("Community submission failed for %s", experiment.id)

    # ==================== Persistence ====================

    async def _save_sample(self, sample: Sample) -> None:
        # A failed write still counts as a completed call
        try:
            await self.storage.save_sample(sample)
        except Exception as e:
            logger.warning("Failed to persist sample %s: %s", sample.id, e)

    async def _save_experiment(self, experiment: Experiment) -> None:
        try:
            await self.storage.save_experiment(experiment)
        except Exception as e:
            logger.warning("Failed to persist experiment %s (%s): %s", experiment.id, experiment.status.value, e)

    async def _save_results(self, results: ExperimentResults) -> None:
        try:
            await self.storage.save_results(results)
        except Exception as e:
            logger.warning("Failed to persist results for %s: %s", results.experiment_id, e)

"""
Application Context

Wires the registry, storage, community reporter and runner together once at
start-up; components receive their collaborators explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass

from oneword_core.config import OneWordConfig, load_config
from oneword_core.infrastructure.community import CommunityReporter
from oneword_core.infrastructure.providers.registry import ProviderRegistry
from oneword_core.infrastructure.storage import ExperimentStorage, FileStorage
from oneword_core.use_cases.experiment_runner import ExperimentRunner


@dataclass
class AppContext:
    """Explicitly constructed application services"""
    config: OneWordConfig
    registry: ProviderRegistry
    storage: ExperimentStorage
    community: CommunityReporter | None
    runner: ExperimentRunner


def build_context(
    config: OneWordConfig | None = None,
    storage: ExperimentStorage | None = None,
    registry: ProviderRegistry | None = None,
) -> AppContext:
    """
    Build the application context

    Args:
        config: OneWordConfig (loads from env if not provided)
        storage: Storage backend (FileStorage under config.storage.data_dir if not provided)
        registry: Provider registry (built from config if not provided)

    Returns:
        AppContext
    """
    if config is None:
        config = load_config()

    registry = registry or ProviderRegistry.from_config(config)
    storage = storage or FileStorage(config.storage.data_dir)

    community = None
    if config.community.enabled and config.community.base_url:
        community = CommunityReporter(
            config.community.base_url,
            timeout_seconds=config.community.timeout_seconds,
        )

    runner = ExperimentRunner(
        registry=registry,
        storage=storage,
        community=community,
        config=config.runner,
        max_tokens=config.request.max_tokens,
    )
    return AppContext(
        config=config,
        registry=registry,
        storage=storage,
        community=community,
        runner=runner,
    )

"""
oneword-core CLI Runner

Runs one single-word sampling experiment from the command line.

Usage:
    python -m oneword_core.runner --stimulus "The sky is"
    python -m oneword_core.runner --stimulus "The sky is" --models claude-haiku-4-5-20251001,gpt-4o-mini \\
        --temperature-range 0.0 1.0 3 --top-k 40 --samples 20

Check key formats:
    python -m oneword_core.runner --check-keys

Stimulus library:
    python -m oneword_core.runner --list-stimuli
    python -m oneword_core.runner --stimulus "My favourite colour is" --save-stimulus --category identity
    python -m oneword_core.runner --stimulus-id existential-1
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from pathlib import Path

from dotenv import load_dotenv

from oneword_core.config import CREDENTIAL_ENV_VARS, load_config, load_credentials
from oneword_core.context import AppContext, build_context
from oneword_core.domain.constants import DEFAULT_MODELS
from oneword_core.domain.entities import Experiment, ExperimentResults, ExperimentStatus
from oneword_core.domain.exceptions import OneWordError
from oneword_core.domain.value_objects import RunProgress, SweepAxis
from oneword_core.use_cases.aggregation import results_to_dataframe, samples_to_dataframe
from oneword_core.use_cases.config_expander import expand_configs
from oneword_core.use_cases.experiment_builder import create_experiment, create_stimulus

POLL_INTERVAL_SECONDS = 0.5
TOP_WORDS_SHOWN = 15


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="oneword-core: Sample single-word completions across models and sampling parameters",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--stimulus",
        help="Sentence for the models to continue with one word",
    )
    source.add_argument(
        "--stimulus-id",
        help="Id of a built-in or saved stimulus to use",
    )
    parser.add_argument(
        "--save-stimulus",
        action="store_true",
        help="Save --stimulus to the stimulus library before running",
    )
    parser.add_argument(
        "--category",
        default=None,
        help="Stimulus category for --save-stimulus (default: custom) or filter for --list-stimuli",
    )
    parser.add_argument(
        "--list-stimuli",
        action="store_true",
        help="List the stimulus library and exit",
    )
    parser.add_argument(
        "--models",
        default=None,
        help="Comma-separated list of model ids (default: uses DEFAULT_MODELS)",
    )
    temperature = parser.add_mutually_exclusive_group()
    temperature.add_argument("--temperature", type=float, default=0.7,
                             help="Single temperature (default: 0.7)")
    temperature.add_argument("--temperature-range", type=float, nargs=3,
                             metavar=("MIN", "MAX", "STEPS"),
                             help="Temperature sweep: MIN MAX STEPS")
    top_k = parser.add_mutually_exclusive_group()
    top_k.add_argument("--top-k", type=int, default=40,
                       help="Single top-K (default: 40)")
    top_k.add_argument("--top-k-range", type=float, nargs=3,
                       metavar=("MIN", "MAX", "STEPS"),
                       help="Top-K sweep: MIN MAX STEPS")
    parser.add_argument(
        "--samples",
        type=int,
        default=10,
        help="Samples per model x config (default: 10)",
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        help="Directory for output CSV files (default: results)",
    )
    parser.add_argument(
        "--check-keys",
        action="store_true",
        help="Check the format of the configured API keys and exit",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    args = parser.parse_args(argv)
    if not (args.check_keys or args.list_stimuli or args.stimulus or args.stimulus_id):
        parser.error("--stimulus or --stimulus-id is required unless --check-keys or --list-stimuli is given")
    if args.save_stimulus and not args.stimulus:
        parser.error("--save-stimulus requires --stimulus")
    return args


def build_axes(args: argparse.Namespace) -> tuple[SweepAxis, SweepAxis]:
    """Translate CLI arguments into temperature and top-K sweep axes"""
    if args.temperature_range:
        t_min, t_max, t_steps = args.temperature_range
        temperature = SweepAxis.range(t_min, t_max, int(t_steps))
    else:
        temperature = SweepAxis.single(args.temperature)

    if args.top_k_range:
        k_min, k_max, k_steps = args.top_k_range
        top_k = SweepAxis.range(k_min, k_max, int(k_steps))
    else:
        top_k = SweepAxis.single(args.top_k)

    return temperature, top_k


def _format_eta(ms: float) -> str:
    if not math.isfinite(ms):
        return "--"
    seconds = int(ms / 1000)
    return f"{seconds // 60}m{seconds % 60:02d}s"


def _print_progress(progress: RunProgress) -> None:
    config = progress.current_config
    recent = ", ".join(progress.recent_words[:5])
    print(
        f"[{progress.completed_calls}/{progress.total_calls}] {progress.current_model} "
        f"| temp={config.temperature:.2f} top_k={config.top_k} "
        f"| ${progress.running_cost:.4f} | ETA {_format_eta(progress.estimated_time_remaining)} "
        f"| {recent}"
    )


def print_report(experiment: Experiment, results: ExperimentResults) -> None:
    print(f"=== Results: {experiment.id} ({experiment.status.value}) ===\n")
    print(f"  Samples:      {results.total_samples}/{experiment.total_calls}")
    print(f"  Unique words: {results.unique_words}")
    print(f"  Entropy:      {results.entropy:.3f} bits")
    print(f"  Cost:         ${experiment.actual_cost or 0.0:.4f} (estimated ${experiment.estimated_cost:.4f})")
    print()

    print(f"  {'Word':<24} {'Count':>7} {'%':>7}")
    print(f"  {'-'*24} {'-'*7} {'-'*7}")
    for freq in results.top_words[:TOP_WORDS_SHOWN]:
        print(f"  {freq.word:<24} {freq.count:>7} {freq.percentage:>7.1f}")
    print()

    print(f"  {'Model':<32} {'Samples':>8} {'Unique':>7}  Top word")
    print(f"  {'-'*32} {'-'*8} {'-'*7}  {'-'*16}")
    for model_result in results.by_model:
        top = model_result.words[0].word if model_result.words else ""
        print(
            f"  {model_result.model_id:<32} "
            f"{model_result.total_samples:>8} "
            f"{model_result.unique_words:>7}  {top}"
        )
    print()

    if len(results.by_temperature) > 1:
        print(f"  {'Temperature':>11}  Top words")
        print(f"  {'-'*11}  {'-'*40}")
        for temperature in sorted(results.by_temperature):
            words = results.by_temperature[temperature][:5]
            summary = ", ".join(f"{w.word} ({w.percentage:.0f}%)" for w in words)
            print(f"  {temperature:>11.2f}  {summary}")
        print()


def check_keys(ctx: AppContext, credentials: dict[str, str]) -> int:
    print("=== API Key Check (format only) ===\n")
    for provider in ctx.registry.get_all_providers():
        key = credentials.get(provider.id)
        if not key:
            env_vars = " / ".join(CREDENTIAL_ENV_VARS.get(provider.id, ()))
            print(f"  {provider.name:<12} not configured ({env_vars})")
            continue
        result = ctx.registry.validate_key(provider.id, key)
        status = "OK" if result.is_valid else f"INVALID: {result.error}"
        print(f"  {provider.name:<12} {key[:7]}...{key[-4:]}  {status}")
    print()
    return 0


async def list_stimuli(ctx: AppContext, category: str | None = None) -> int:
    print("=== Stimulus Library ===\n")
    for stimulus in await ctx.storage.list_stimuli(category):
        origin = "built-in" if stimulus.is_built_in else "saved"
        print(f"  {stimulus.id:<44} {stimulus.category:<12} {origin:<9} {stimulus.text}")
    print()
    return 0


async def resolve_stimulus(ctx: AppContext, args: argparse.Namespace) -> str | None:
    """Stimulus text from --stimulus or --stimulus-id, saving it first if asked"""
    if args.stimulus_id:
        for stimulus in await ctx.storage.list_stimuli():
            if stimulus.id == args.stimulus_id:
                return stimulus.text
        return None

    if args.save_stimulus:
        stimulus = create_stimulus(args.stimulus, args.category or "custom")
        await ctx.storage.save_stimulus(stimulus)
        print(f"Saved stimulus {stimulus.id}")
    return args.stimulus


async def run_experiment(ctx: AppContext, experiment: Experiment, credentials: dict[str, str]) -> ExperimentResults | None:
    """Start the experiment, print progress until it ends and return the stored results"""
    await ctx.runner.start(experiment, credentials)
    last_completed = -1
    try:
        while ctx.runner.is_running(experiment.id):
            progress = ctx.runner.get_progress(experiment.id)
            if progress and progress.completed_calls != last_completed:
                _print_progress(progress)
                last_completed = progress.completed_calls
            await asyncio.sleep(POLL_INTERVAL_SECONDS)
    except asyncio.CancelledError:
        print("\nInterrupted, aborting experiment...")
        if ctx.runner.is_running(experiment.id):
            await ctx.runner.abort(experiment.id)
    finally:
        await ctx.runner.close()

    return await ctx.storage.load_results(experiment.id)


async def _main_async(args: argparse.Namespace) -> int:
    config = load_config()
    credentials = load_credentials()
    ctx = build_context(config)

    if args.check_keys:
        return check_keys(ctx, credentials)
    if args.list_stimuli:
        return await list_stimuli(ctx, args.category)

    stimulus = await resolve_stimulus(ctx, args)
    if stimulus is None:
        print(f"ERROR: Unknown stimulus: {args.stimulus_id}")
        return 1

    models = [m.strip() for m in args.models.split(",")] if args.models else DEFAULT_MODELS
    unknown = [m for m in models if ctx.registry.find_model(m) is None]
    if unknown:
        print(f"ERROR: Unknown models: {', '.join(unknown)}")
        return 1

    temperature, top_k = build_axes(args)
    configs = expand_configs(temperature, top_k)
    experiment = create_experiment(ctx.registry, stimulus, models, configs, args.samples)
    await ctx.storage.save_experiment(experiment)

    print(f"\n=== Experiment {experiment.id} ===\n")
    print(f"  Stimulus: {experiment.stimulus}")
    print(f"  Models:   {experiment.selected_models}")
    print(f"  Configs:  {[(c.temperature, c.top_k) for c in configs]}")
    print(f"  Calls:    {experiment.total_calls}")
    print(f"  Est cost: ${experiment.estimated_cost:.4f}")
    print()

    results = await run_experiment(ctx, experiment, credentials)
    stored = await ctx.storage.load_experiment(experiment.id) or experiment
    print()
    if results is None:
        print(f"No results stored for {experiment.id} (status: {stored.status.value})")
        return 1

    print_report(stored, results)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    samples_path = output_dir / f"samples_{experiment.id}.csv"
    words_path = output_dir / f"words_{experiment.id}.csv"
    samples = await ctx.storage.get_samples_by_experiment(experiment.id)
    samples_to_dataframe(samples).to_csv(samples_path, index=False)
    results_to_dataframe(results).to_csv(words_path, index=False)

    print("=== Output ===\n")
    print(f"  Samples: {samples_path}")
    print(f"  Words:   {words_path}")
    print()
    return 0 if stored.status is ExperimentStatus.COMPLETED else 1


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        exit_code = asyncio.run(_main_async(args))
    except OneWordError as e:
        print(f"ERROR: {e}")
        exit_code = 1
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

"""
Config Expansion

Turns a sweep specification (single value or min/max/steps per axis) into the
ordered list of (temperature, top-K) configurations to test.
"""

from oneword_core.domain.exceptions import InvalidRangeError
from oneword_core.domain.value_objects import ExperimentConfig, SweepAxis


def generate_range(minimum: float, maximum: float, steps: int) -> list[float]:
    """
    Generate `steps` evenly spaced values from minimum to maximum inclusive.

    Args:
        minimum: First value
        maximum: Last value
        steps: Number of values (1 yields [minimum])

    Returns:
        list[float]: Strictly increasing values when steps > 1

    Raises:
        InvalidRangeError: If steps < 1, maximum < minimum, or steps > 1 with an empty span
    """
    if steps < 1:
        raise InvalidRangeError(f"steps must be at least 1 (got {steps})")
    if maximum < minimum:
        raise InvalidRangeError(f"maximum ({maximum}) must not be less than minimum ({minimum})")
    if steps == 1:
        return [minimum]
    if maximum == minimum:
        raise InvalidRangeError("steps > 1 requires maximum > minimum")

    step_size = (maximum - minimum) / (steps - 1)
    values = [minimum + i * step_size for i in range(steps - 1)]
    # Pin the last value to avoid float drift past maximum
    values.append(maximum)
    return values


def axis_values(axis: SweepAxis, integer: bool = False) -> list[float] | list[int]:
    """
    Discretize one sweep axis.

    Args:
        axis: Axis specification
        integer: Round values to int (top-K axis)

    Returns:
        Values in generation order

    Raises:
        InvalidRangeError: If the range is malformed, or an integer range has more
            steps than distinct integers between its bounds
    """
    if axis.mode == "single":
        return [int(round(axis.value))] if integer else [axis.value]
    if axis.mode != "range":
        raise InvalidRangeError(f"Unknown sweep mode: {axis.mode}")

    values = generate_range(axis.minimum, axis.maximum, axis.steps)
    if not integer:
        return values

    rounded = [int(round(v)) for v in values]
    if len(set(rounded)) != len(rounded):
        raise InvalidRangeError(
            f"{axis.steps} steps between {axis.minimum} and {axis.maximum} "
            f"do not yield distinct integer values"
        )
    return rounded


def expand_configs(temperature: SweepAxis, top_k: SweepAxis) -> list[ExperimentConfig]:
    """
    Expand a sweep into its configurations.

    Order is outer temperature, inner top-K; identical inputs always give the
    same list.

    Args:
        temperature: Temperature axis
        top_k: Top-K axis

    Returns:
        list[ExperimentConfig]: Cartesian product of both axes
    """
    temperatures = axis_values(temperature)
    top_ks = axis_values(top_k, integer=True)
    return [
        ExperimentConfig(temperature=float(t), top_k=int(k))
        for t in temperatures
        for k in top_ks
    ]

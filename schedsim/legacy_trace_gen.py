"""The earlier trace generator, driven by dominance and IO-slice settings."""

from __future__ import annotations

import argparse
import enum
import json
import math
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from schedsim.task import ComputeType, Priority, Slice, Task
from schedsim.trace_gen import normal_pdf, write_serie
from schedsim.traits import ArrivalTrait

_BURST_STD_DEVIATION = 1.0
_POISSON_CHUNK = 30.0


class IOTrait(enum.Enum):
    """Length of the IO slices in a task."""

    SHORT = "short"
    LONG = "long"
    MIXED = "mixed"


class ComputeTrait(enum.Enum):
    """Whether tasks are dominated by CPU work, IO work, or either."""

    CPU = "cpu"
    IO = "io"
    MIXED = "mixed"


class TimeLimitTrait(enum.Enum):
    """How generous task deadlines are."""

    TIGHT = "tight"
    LOOSE = "loose"
    MIXED = "mixed"


class TimeLimitVarianceTrait(enum.Enum):
    """How much deadlines vary around their expected value."""

    SMALL = "small"
    LARGE = "large"


@dataclass(frozen=True)
class LegacyConfig:
    """Settings of the earlier trace generator."""

    duration: int
    provision: float
    task_duration_min: int
    task_duration_max: int
    amplification_low: float
    amplification_high: float
    amplification_variance_low: float
    amplification_variance_high: float
    dominance_min: float
    dominance_max: float
    io_slice_duration_low: int
    io_slice_duration_high: int


def legacy_config_from_dict(data: dict[str, Any]) -> LegacyConfig:
    """Build a configuration from its JSON dictionary; a missing key raises KeyError."""
    return LegacyConfig(
        duration=int(data["duration"]),
        provision=float(data["provision"]),
        task_duration_min=int(data["minimal task duration"]),
        task_duration_max=int(data["maximal task duration"]),
        amplification_low=float(data["turnarround amplification low"]),
        amplification_high=float(data["turnarround amplification high"]),
        amplification_variance_low=float(data["turnarround amplification variance low"]),
        amplification_variance_high=float(data["turnarround amplification variance high"]),
        dominance_min=float(data["minimal dominance"]),
        dominance_max=float(data["maximal dominance"]),
        io_slice_duration_low=int(data["io slice duration low"]),
        io_slice_duration_high=int(data["io slice duration high"]),
    )


def poisson(rng: random.Random, mean: float) -> int:
    """A Poisson-distributed count with the given mean."""
    if mean < 0 or math.isnan(mean):
        raise ValueError(f"poisson mean must be non-negative, got {mean}")
    count = 0
    remaining = mean
    # A sum of Poisson draws is Poisson with the summed mean; chunks keep exp() from underflowing.
    while remaining > 0:
        part = min(remaining, _POISSON_CHUNK)
        remaining -= part
        limit = math.exp(-part)
        product = rng.random()
        while product > limit:
            count += 1
            product *= rng.random()
    return count


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _io_slices(
    config: LegacyConfig, io_trait: IOTrait, total_io: int, rng: random.Random
) -> list[Slice]:
    short_range = (int(config.io_slice_duration_low * 0.5), int(config.io_slice_duration_low * 1.5))
    long_range = (int(config.io_slice_duration_high * 0.5), int(config.io_slice_duration_high * 1.5))

    slices: list[Slice] = []
    io_left = total_io
    while io_left > 0:
        if io_trait is IOTrait.SHORT:
            duration = rng.randint(*short_range)
        elif io_trait is IOTrait.LONG:
            duration = rng.randint(*long_range)
        else:
            duration = rng.randint(*(short_range if rng.random() > 0.5 else long_range))
        duration = max(1, min(duration, io_left))
        slices.append((ComputeType.IO, duration))
        io_left -= duration
    return slices


def _total_io(
    config: LegacyConfig, compute_trait: ComputeTrait, task_duration: int, rng: random.Random
) -> int:
    def dominance() -> float:
        return rng.uniform(config.dominance_min, config.dominance_max)

    if compute_trait is ComputeTrait.CPU:
        return int((1 - dominance()) * task_duration)
    if compute_trait is ComputeTrait.IO:
        return int(dominance() * task_duration)
    if rng.random() > 0.5:
        return int(dominance() * task_duration)
    return int((1 - dominance()) * task_duration)


def _budget(
    config: LegacyConfig,
    time_limit_trait: TimeLimitTrait,
    variance: int,
    task_duration: int,
    rng: random.Random,
) -> int:
    def draw(amplification: float) -> int:
        return int(((rng.random() - 0.5) * variance + 1) * (amplification * task_duration))

    if time_limit_trait is TimeLimitTrait.TIGHT:
        return draw(config.amplification_low)
    if time_limit_trait is TimeLimitTrait.LOOSE:
        return draw(config.amplification_high)
    if rng.random() > 0.5:
        return draw(config.amplification_low)
    return draw(config.amplification_high)


def generate_serie(
    config: LegacyConfig,
    io_trait: IOTrait,
    compute_trait: ComputeTrait,
    arrival_trait: ArrivalTrait,
    time_limit_trait: TimeLimitTrait,
    variance_trait: TimeLimitVarianceTrait,
    rng: Optional[random.Random] = None,
) -> list[Task]:
    """A series of tasks over the configured duration, at most one per tick."""
    rng = rng if rng is not None else random.Random()
    duration = config.duration
    average = (config.task_duration_min + config.task_duration_max) // 2
    task_n = int(duration * config.provision / average)
    per_tick = task_n / duration if duration else 0.0

    total_pdf = sum(
        normal_pdf(t / duration, 0.5, _BURST_STD_DEVIATION) for t in range(duration)
    )
    # The variance setting is used as a whole number.
    variance = int(
        config.amplification_variance_low
        if variance_trait is TimeLimitVarianceTrait.SMALL
        else config.amplification_variance_high
    )

    accumulated = 1.0
    serie: list[Task] = []
    for time in range(duration):
        if arrival_trait is ArrivalTrait.BURST:
            accumulated += (
                normal_pdf(time / duration, 0.5, _BURST_STD_DEVIATION) / total_pdf * task_n
            )
        else:
            accumulated += poisson(rng, per_tick)

        if accumulated < 1:
            continue

        task_duration = rng.randint(config.task_duration_min, config.task_duration_max)
        total_io = _total_io(config, compute_trait, task_duration, rng)
        io_slices = _io_slices(config, io_trait, total_io, rng)

        cpu_count = len(io_slices) + 1
        cpu_average = _trunc_div(task_duration - total_io, cpu_count)
        slices: list[Slice] = []
        pending_io = iter(io_slices)
        for _ in range(cpu_count):
            cpu_duration = int(rng.random() * 2 * cpu_average)
            slices.append((ComputeType.CPU, max(cpu_duration, 1)))
            io_slice = next(pending_io, None)
            if io_slice is not None:
                slices.append(io_slice)

        budget = _budget(config, time_limit_trait, variance, task_duration, rng)
        budget = max(budget, sum(length for _, length in slices))
        priority = Priority.HIGH if rng.random() > 0.5 else Priority.LOW

        accumulated -= 1
        serie.append(
            Task(
                arrival_time=time,
                deadline=time + budget,
                priority=priority,
                slices=tuple(slices),
            )
        )

    if not serie or serie[0].arrival_time != 0:
        raise ValueError("generated series does not start at time 0")
    return serie


def generate(
    config: LegacyConfig, prefix: str, rng: Optional[random.Random] = None
) -> list[Path]:
    """Write the ten standard traces ``<prefix>-1.json`` to ``<prefix>-10.json``."""
    rng = rng if rng is not None else random.Random()
    tight, loose = TimeLimitTrait.TIGHT, TimeLimitTrait.LOOSE
    small, large = TimeLimitVarianceTrait.SMALL, TimeLimitVarianceTrait.LARGE
    poisson_arrival, burst = ArrivalTrait.POISSON, ArrivalTrait.BURST
    subtasks = [
        (IOTrait.SHORT, ComputeTrait.CPU, poisson_arrival, loose, small),
        (IOTrait.SHORT, ComputeTrait.CPU, poisson_arrival, tight, small),
        (IOTrait.LONG, ComputeTrait.IO, poisson_arrival, loose, small),
        (IOTrait.LONG, ComputeTrait.IO, poisson_arrival, tight, small),
        (IOTrait.MIXED, ComputeTrait.MIXED, poisson_arrival, loose, small),
        (IOTrait.MIXED, ComputeTrait.MIXED, poisson_arrival, tight, small),
        (IOTrait.MIXED, ComputeTrait.MIXED, poisson_arrival, loose, large),
        (IOTrait.MIXED, ComputeTrait.MIXED, poisson_arrival, tight, large),
        (IOTrait.MIXED, ComputeTrait.MIXED, burst, loose, large),
        (IOTrait.MIXED, ComputeTrait.MIXED, burst, tight, large),
    ]

    paths = []
    for number, traits in enumerate(subtasks, 1):
        serie = generate_serie(config, *traits, rng)
        path = Path(f"{prefix}-{number}.json")
        write_serie(path, serie)
        paths.append(path)
    return paths


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate the standard traces from a configuration file."""
    parser = argparse.ArgumentParser(
        prog="schedsim-legacy-trace-gen", description="Generate task traces (earlier scheme)."
    )
    parser.add_argument("config", help="generator configuration (JSON)")
    parser.add_argument("prefix", help="prefix of the trace files to write")
    args = parser.parse_args(argv)

    config = legacy_config_from_dict(json.loads(Path(args.config).read_text()))
    generate(config, args.prefix)
    return 0


if __name__ == "__main__":
    sys.exit(main())
"""Random generation of task traces for the scheduling simulator."""

from __future__ import annotations

import argparse
import json
import logging
import math
import random
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from schedsim.task import ComputeType, Priority, Slice, Task, serie_to_json
from schedsim.traits import (
    ArrivalTrait,
    BudgetTrait,
    MixedDetail,
    NonShortDetail,
    PriorityTrait,
    TaskConfig,
    TaskTrait,
    TaskType,
    TraceConfig,
    trace_config_from_dict,
)

logger = logging.getLogger(__name__)

_INV_SQRT_2PI = 0.3989422804014327
_BURST_STD_DEVIATION = 0.1
_BURST_VARIANCE = 1.0
_VARIANCE = 0.5


def normal_pdf(x: float, m: float, s: float) -> float:
    """Density of the normal distribution with mean ``m`` and deviation ``s`` at ``x``."""
    a = (x - m) / s
    return _INV_SQRT_2PI / s * math.exp(-0.5 * a * a)


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


class TraceGenerator:
    """Draws tasks and task series according to a trace configuration."""

    def __init__(self, config: TraceConfig, rng: Optional[random.Random] = None) -> None:
        self.config = config
        self.rng = rng if rng is not None else random.Random()

    def rand(self) -> float:
        """A uniform number in [0, 1)."""
        return self.rng.random()

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self.rand() < probability

    def coin(self) -> bool:
        """A fair coin toss."""
        return self.chance(0.5)

    def fluctuate(self, expected: float, variance: float) -> float:
        """``expected`` scaled by a factor in [1 - variance/2, 1 + variance/2)."""
        return ((self.rand() - 0.5) * variance + 1) * expected

    def _task_config(self, task_type: TaskType) -> TaskConfig:
        if task_type is TaskType.SHORT:
            return self.config.short_task
        if task_type is TaskType.REGULAR:
            return self.config.regular_task
        if task_type is TaskType.LONG:
            return self.config.long_task
        raise ValueError(f"no task configuration for {task_type}")

    def _durations(self) -> tuple[int, int, int]:
        return tuple(
            (cfg.duration_min + cfg.duration_max) // 2
            for cfg in (self.config.short_task, self.config.regular_task, self.config.long_task)
        )

    def expected_task_duration(self, task_trait: TaskTrait) -> int:
        """Average duration of a task drawn under ``task_trait``."""
        short, regular, long_ = self._durations()

        def mixed(detail: MixedDetail) -> float:
            return (
                short * detail.short_ratio
                + regular * detail.regular_ratio
                + long_ * (1 - detail.short_ratio - detail.regular_ratio)
            )

        if task_trait.type is TaskType.SHORT:
            return short
        if task_trait.type is TaskType.REGULAR:
            return regular
        if task_trait.type is TaskType.LONG:
            return long_
        if task_trait.type is TaskType.MIXED:
            return int(mixed(task_trait.detail))

        stages = task_trait.detail
        total = 0.0
        for index, (start, detail) in enumerate(stages):
            end = stages[index + 1][0] if index + 1 < len(stages) else 1.0
            total += (end - start) * mixed(detail)
        return int(total)

    def _draw(self, task_type: TaskType) -> int:
        cfg = self._task_config(task_type)
        return self.rng.randint(cfg.duration_min, cfg.duration_max)

    def random_task_duration(
        self, task_trait: TaskTrait, progress: float
    ) -> tuple[int, TaskType, Optional[NonShortDetail]]:
        """Draw a duration; returns it with the concrete task type and its IO detail."""
        if task_trait.type is TaskType.SHORT:
            return self._draw(TaskType.SHORT), TaskType.SHORT, None
        if task_trait.type in (TaskType.REGULAR, TaskType.LONG):
            return self._draw(task_trait.type), task_trait.type, task_trait.detail

        if task_trait.type is TaskType.MIXED:
            mixed: MixedDetail = task_trait.detail
        else:
            stages = task_trait.detail
            if not stages:
                raise ValueError("shifting workload has no stages")
            mixed = next(
                (detail for start, detail in stages if start >= progress), stages[-1][1]
            )

        dice = self.rand()
        if dice < mixed.short_ratio:
            return self._draw(TaskType.SHORT), TaskType.SHORT, None
        if dice < mixed.short_ratio + mixed.regular_ratio:
            return self._draw(TaskType.REGULAR), TaskType.REGULAR, mixed.regular_task
        return self._draw(TaskType.LONG), TaskType.LONG, mixed.long_task

    def generate_io_slices(
        self, task_duration: int, task_type: TaskType, detail: Optional[NonShortDetail]
    ) -> tuple[list[Slice], int]:
        """IO slices of a task and their planned total IO time."""
        cfg = self._task_config(task_type)
        if task_type is TaskType.SHORT:
            expected = int(task_duration * cfg.io_total_long)
            total_io = 0 if self.coin() else int(self.fluctuate(expected, _VARIANCE))
        else:
            share = (
                cfg.io_total_long
                if self.chance(detail.io_dominance_ratio)
                else cfg.io_total_short
            )
            total_io = int(self.fluctuate(int(task_duration * share), _VARIANCE))

        slices: list[Slice] = []
        io_left = total_io
        while io_left > 0:
            if task_type is TaskType.SHORT:
                duration = total_io
            else:
                share = (
                    cfg.io_slice_long if self.chance(detail.long_io_ratio) else cfg.io_slice_short
                )
                duration = int(self.fluctuate(int(task_duration * share), _VARIANCE))
            duration = max(1, min(duration, io_left))
            slices.append((ComputeType.IO, duration))
            io_left -= duration
        return slices, total_io

    def generate_slices(
        self, task_duration: int, task_type: TaskType, detail: Optional[NonShortDetail]
    ) -> list[Slice]:
        """CPU and IO slices alternating, starting and ending with CPU."""
        io_slices, total_io = self.generate_io_slices(task_duration, task_type, detail)
        cpu_count = len(io_slices) + 1
        cpu_average = _trunc_div(task_duration - total_io, cpu_count)

        slices: list[Slice] = []
        pending_io = iter(io_slices)
        for _ in range(cpu_count):
            cpu_duration = int(self.coin() * 2 * cpu_average)
            slices.append((ComputeType.CPU, max(cpu_duration, 1)))
            io_slice = next(pending_io, None)
            if io_slice is not None:
                slices.append(io_slice)
        return slices

    def generate_task(
        self,
        task_trait: TaskTrait,
        budget_trait: BudgetTrait,
        priority_trait: PriorityTrait,
        time: int,
        progress: float,
    ) -> Task:
        """Draw one task arriving at ``time``, ``progress`` of the way through the trace."""
        duration, task_type, detail = self.random_task_duration(task_trait, progress)
        slices = self.generate_slices(duration, task_type, detail)

        cfg = self._task_config(task_type)
        budget_tight = int(self.fluctuate(duration * cfg.budget_tight, _VARIANCE))
        budget_loose = int(self.fluctuate(duration * cfg.budget_loose, _VARIANCE))
        if budget_trait is BudgetTrait.TIGHT:
            budget = budget_tight
        elif budget_trait is BudgetTrait.LOOSE:
            budget = budget_loose
        else:
            budget = budget_tight if self.coin() else budget_loose
        budget = max(budget, sum(length for _, length in slices))

        if priority_trait is PriorityTrait.TIGHT_BUDGET_PRONE and budget_trait is BudgetTrait.TIGHT:
            high = self.chance(self.config.priority_proneness)
        else:
            high = self.coin()

        return Task(
            arrival_time=time,
            deadline=time + budget,
            priority=Priority.HIGH if high else Priority.LOW,
            slices=tuple(slices),
        )

    def generate_serie(
        self,
        task_trait: TaskTrait,
        budget_trait: BudgetTrait,
        priority_trait: PriorityTrait,
        arrival_trait: ArrivalTrait,
    ) -> list[Task]:
        """A series of tasks over the configured duration, at most one per tick."""
        duration = self.config.duration
        average = self.expected_task_duration(task_trait)
        task_n = int(duration * self.config.provision / average)
        per_tick = task_n / duration if duration else 0.0
        logger.info("task_drtn_avg: %d", average)
        logger.info("task_n: %d", task_n)
        logger.info("task_per_tick: %g", per_tick)

        total_pdf = sum(
            normal_pdf(t / duration, 0.5, _BURST_STD_DEVIATION) for t in range(duration)
        )

        accumulated = 1.0
        serie: list[Task] = []
        for time in range(duration):
            if arrival_trait is ArrivalTrait.BURST:
                expected = (
                    normal_pdf(time / duration, 0.5, _BURST_STD_DEVIATION) / total_pdf * task_n
                )
                accumulated += self.fluctuate(expected, _BURST_VARIANCE)
            else:
                accumulated += self.rand() * 2 * per_tick

            if accumulated >= 1:
                serie.append(
                    self.generate_task(
                        task_trait, budget_trait, priority_trait, time, time / duration
                    )
                )
                accumulated -= 1

        if not serie or serie[0].arrival_time != 0:
            raise ValueError("generated series does not start at time 0")
        return serie


def write_serie(path: Union[str, Path], serie: Iterable[Task]) -> None:
    """Write a task series to ``path`` as one line of JSON."""
    Path(path).write_text(serie_to_json(serie) + "\n")


def _stage(start: float, short_ratio: float, regular_ratio: float) -> tuple[float, MixedDetail]:
    return start, MixedDetail(short_ratio, regular_ratio)


def generate(
    config: TraceConfig, prefix: str, rng: Optional[random.Random] = None
) -> list[Path]:
    """Write the sixteen standard traces ``<prefix>-1.json`` to ``<prefix>-16.json``."""
    gen = TraceGenerator(config, rng)

    mixed_5 = TaskTrait.mixed_default()
    mixed_5.detail.short_ratio, mixed_5.detail.regular_ratio = 0.6, 0.4
    mixed_6 = TaskTrait.mixed_default()
    mixed_6.detail.short_ratio, mixed_6.detail.regular_ratio = 0.8, 0.0
    shifting_7 = TaskTrait.shifting_default()
    shifting_7.detail[0][1].short_ratio, shifting_7.detail[0][1].regular_ratio = 0.8, 0.1
    shifting_7.detail[1][1].short_ratio, shifting_7.detail[1][1].regular_ratio = 0.2, 0.7
    shifting_8 = TaskTrait(
        TaskType.SHIFTING,
        [_stage(0.0, 0.9, 0.05), _stage(0.33, 0.33, 0.33), _stage(0.67, 0.05, 0.9)],
    )

    loose, tight = BudgetTrait.LOOSE, BudgetTrait.TIGHT
    random_prio, prone = PriorityTrait.RANDOM, PriorityTrait.TIGHT_BUDGET_PRONE
    poisson, burst = ArrivalTrait.POISSON, ArrivalTrait.BURST
    subtasks = [
        (TaskTrait.short_default(), loose, random_prio, poisson),
        (TaskTrait.regular_default(), loose, random_prio, poisson),
        (TaskTrait.long_default(), loose, random_prio, poisson),
        (TaskTrait.mixed_default(), loose, random_prio, poisson),
        (mixed_5, loose, random_prio, poisson),
        (mixed_6, loose, random_prio, poisson),
        (shifting_7, loose, random_prio, poisson),
        (shifting_8, loose, random_prio, poisson),
        (TaskTrait.mixed_default(), tight, random_prio, poisson),
        (TaskTrait.mixed_default(), tight, random_prio, poisson),
        (TaskTrait.mixed_default(), loose, prone, poisson),
        (TaskTrait.mixed_default(), loose, prone, poisson),
        (TaskTrait.mixed_default(), loose, random_prio, burst),
        (TaskTrait.mixed_default(), loose, random_prio, burst),
        (TaskTrait.shifting_default(), tight, prone, burst),
        (TaskTrait.shifting_default(), tight, prone, burst),
    ]

    paths = []
    for number, traits in enumerate(subtasks, 1):
        serie = gen.generate_serie(*traits)
        path = Path(f"{prefix}-{number}.json")
        logger.info("file_name: %s", path)
        write_serie(path, serie)
        paths.append(path)
    return paths


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate the standard traces from a configuration file."""
    parser = argparse.ArgumentParser(
        prog="schedsim-trace-gen", description="Generate task traces."
    )
    parser.add_argument("config", help="trace configuration (JSON)")
    parser.add_argument("prefix", help="prefix of the trace files to write")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)
    config = trace_config_from_dict(json.loads(Path(args.config).read_text()))
    generate(config, args.prefix)
    return 0


if __name__ == "__main__":
    sys.exit(main())
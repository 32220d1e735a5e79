"""Settings and workload traits that shape a generated task trace."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass
class TaskConfig:
    """Duration range, deadline budgets and IO shape for one class of task."""

    duration_min: int
    duration_max: int
    budget_tight: float
    budget_loose: float
    io_total_long: float
    io_total_short: float
    io_slice_long: float
    io_slice_short: float


@dataclass
class TraceConfig:
    """Settings for generating traces."""

    duration: int
    provision: float
    priority_proneness: float
    short_task: TaskConfig
    regular_task: TaskConfig
    long_task: TaskConfig


def task_config_from_dict(data: dict[str, Any]) -> TaskConfig:
    """Build a task class configuration; a missing key raises KeyError."""
    return TaskConfig(
        duration_min=int(data["duration_min"]),
        duration_max=int(data["duration_max"]),
        budget_tight=float(data["budget_tight"]),
        budget_loose=float(data["budget_loose"]),
        io_total_long=float(data["io_total_long"]),
        io_total_short=float(data["io_total_short"]),
        io_slice_long=float(data["io_slice_long"]),
        io_slice_short=float(data["io_slice_short"]),
    )


def trace_config_from_dict(data: dict[str, Any]) -> TraceConfig:
    """Build a trace configuration; a missing key raises KeyError."""
    return TraceConfig(
        duration=int(data["duration"]),
        provision=float(data["provision"]),
        priority_proneness=float(data["priority_proneness"]),
        short_task=task_config_from_dict(data["short_task"]),
        regular_task=task_config_from_dict(data["regular_task"]),
        long_task=task_config_from_dict(data["long_task"]),
    )


class TaskType(enum.Enum):
    """The mix of tasks a trace is drawn from."""

    SHORT = "short"
    REGULAR = "regular"
    LONG = "long"
    MIXED = "mixed"
    SHIFTING = "shifting"


@dataclass
class NonShortDetail:
    """IO behaviour of regular and long tasks."""

    long_io_ratio: float = 0.5
    io_dominance_ratio: float = 0.5


@dataclass
class MixedDetail:
    """Shares of short and regular tasks (the rest are long) and their IO behaviour."""

    short_ratio: float = 0.0
    regular_ratio: float = 0.0
    regular_task: NonShortDetail = field(default_factory=NonShortDetail)
    long_task: NonShortDetail = field(default_factory=NonShortDetail)


ShiftingDetail = list[tuple[float, MixedDetail]]
Detail = Union[NonShortDetail, MixedDetail, ShiftingDetail]


@dataclass
class TaskTrait:
    """The kind of workload and the details that go with it.

    Short workloads carry no detail; regular and long carry a NonShortDetail;
    mixed carries a MixedDetail; shifting carries a list of
    ``(start progress, MixedDetail)`` stages.
    """

    type: TaskType
    detail: Optional[Detail] = None

    @staticmethod
    def short_default() -> "TaskTrait":
        return TaskTrait(TaskType.SHORT)

    @staticmethod
    def regular_default() -> "TaskTrait":
        return TaskTrait(TaskType.REGULAR, NonShortDetail(0.5, 0.5))

    @staticmethod
    def long_default() -> "TaskTrait":
        return TaskTrait(TaskType.LONG, NonShortDetail(0.5, 0.5))

    @staticmethod
    def mixed_default() -> "TaskTrait":
        return TaskTrait(
            TaskType.MIXED,
            MixedDetail(
                short_ratio=0.6,
                regular_ratio=0.35,
                regular_task=NonShortDetail(0.5, 0.5),
                long_task=NonShortDetail(0.5, 0.5),
            ),
        )

    @staticmethod
    def shifting_default() -> "TaskTrait":
        stages: ShiftingDetail = [
            (
                0.0,
                MixedDetail(0.8, 0.1, NonShortDetail(0.5, 0.5), NonShortDetail(0.5, 0.5)),
            ),
            (
                0.5,
                MixedDetail(0.2, 0.7, NonShortDetail(0.5, 0.5), NonShortDetail(0.5, 0.5)),
            ),
        ]
        return TaskTrait(TaskType.SHIFTING, stages)


class BudgetTrait(enum.Enum):
    """How generous task deadlines are."""

    TIGHT = "tight"
    LOOSE = "loose"
    MIXED = "mixed"


class PriorityTrait(enum.Enum):
    """How priorities are handed out."""

    RANDOM = "random"
    TIGHT_BUDGET_PRONE = "tight_budget_prone"


class ArrivalTrait(enum.Enum):
    """How task arrivals are spread over time."""

    POISSON = "poisson"
    BURST = "burst"
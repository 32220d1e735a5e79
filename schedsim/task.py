"""Task descriptions, their JSON form and the runtime state of a running task."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, Iterable, Sequence


class ComputeType(enum.Enum):
    """What a slice of a task runs on."""

    CPU = "CPU"
    IO = "IO"

    @classmethod
    def parse(cls, value: Any) -> "ComputeType":
        """Read a compute type; anything but ``"CPU"`` means IO."""
        return cls.CPU if value == "CPU" else cls.IO


class Priority(enum.Enum):
    """Priority class of a task."""

    HIGH = "high"
    LOW = "low"

    @classmethod
    def parse(cls, value: Any) -> "Priority":
        """Read a priority; anything but ``"high"`` means low."""
        return cls.HIGH if value == "high" else cls.LOW


Slice = tuple[ComputeType, int]


@dataclass(frozen=True)
class Task:
    """A task as it appears in a trace: arrival, deadline, priority and slices."""

    arrival_time: int
    deadline: int
    priority: Priority
    slices: tuple[Slice, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "arrivalTime": self.arrival_time,
            "deadline": self.deadline,
            "priority": self.priority.value,
            "slices": [[kind.value, duration] for kind, duration in self.slices],
        }


@dataclass(frozen=True)
class TaskInfo:
    """The part of a task a scheduling policy is allowed to see."""

    task_id: int
    arrival_time: int
    deadline: int
    priority: Priority

    def to_dict(self) -> dict[str, Any]:
        return {
            "arrivalTime": self.arrival_time,
            "deadline": self.deadline,
            "priority": self.priority.value,
            "taskId": self.task_id,
        }


@dataclass(eq=False)
class RuntimeTask:
    """A task under simulation, tracking which slice it is in and how far."""

    task: Task
    task_id: int
    current_slice: int = 0
    time_spent_in_cur_slice: int = 0

    @property
    def arrival_time(self) -> int:
        return self.task.arrival_time

    @property
    def deadline(self) -> int:
        return self.task.deadline

    @property
    def priority(self) -> Priority:
        return self.task.priority

    @property
    def slices(self) -> tuple[Slice, ...]:
        return self.task.slices

    def final_slice(self) -> bool:
        """Whether the task is in its last slice."""
        return self.current_slice == len(self.slices) - 1

    def slice_remaining(self) -> int:
        """Time left in the current slice."""
        if self.current_slice >= len(self.slices):
            raise IndexError(f"task {self.task_id} has no slice left")
        remaining = self.slices[self.current_slice][1] - self.time_spent_in_cur_slice
        if remaining < 0:
            raise ValueError(f"task {self.task_id} overran its slice")
        return remaining

    def progress(self, elapsed: int) -> None:
        """Advance the current slice by ``elapsed`` time units."""
        remaining = self.slice_remaining()
        if elapsed > remaining:
            raise ValueError(
                f"cannot progress task {self.task_id} by {elapsed}, "
                f"only {remaining} left in slice"
            )
        if elapsed == remaining:
            self.current_slice += 1
            self.time_spent_in_cur_slice = 0
        else:
            self.time_spent_in_cur_slice += elapsed

    def cpu_next(self) -> bool:
        """Whether the task's next piece of work needs the CPU."""
        if self.current_slice == len(self.slices):
            return False
        return self.slices[self.current_slice][0] is ComputeType.CPU

    def info(self) -> TaskInfo:
        """The policy-visible view of this task."""
        return TaskInfo(self.task_id, self.arrival_time, self.deadline, self.priority)

    def to_dict(self) -> dict[str, Any]:
        return {
            "arrivalTime": self.arrival_time,
            "deadline": self.deadline,
            "priority": self.priority.value,
            "taskId": self.task_id,
            "current_slice": self.current_slice,
            "slices": [[kind.value, duration] for kind, duration in self.slices],
            "time_spent_in_cur_slice": self.time_spent_in_cur_slice,
        }


def task_from_dict(data: dict[str, Any]) -> Task:
    """Build a task from its trace dictionary; missing keys raise KeyError."""
    return Task(
        arrival_time=int(data["arrivalTime"]),
        deadline=int(data["deadline"]),
        priority=Priority.parse(data["priority"]),
        slices=tuple(
            (ComputeType.parse(kind), int(duration)) for kind, duration in data["slices"]
        ),
    )


def serie_from_json(data: str | bytes | bytearray | Iterable[dict[str, Any]]) -> list[Task]:
    """Read a task series from JSON text or an already parsed list."""
    if isinstance(data, (str, bytes, bytearray)):
        data = json.loads(data)
    return [task_from_dict(item) for item in data]


def serie_to_json(serie: Iterable[Task]) -> str:
    """Write a task series as compact JSON text."""
    return json.dumps(
        [task.to_dict() for task in serie], separators=(",", ":"), sort_keys=True
    )


def needed_time(task: Task) -> int:
    """Total work in a task across all its slices."""
    return sum(duration for _, duration in task.slices)


def serie_needed_time(serie: Sequence[Task]) -> int:
    """Time to run the whole series back to back on one machine."""
    now = 0
    for task in serie:
        now = max(now, task.arrival_time) + needed_time(task)
    return now
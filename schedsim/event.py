"""Simulation events and the sources that produce them."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from schedsim.task import RuntimeTask, Task, TaskInfo

logger = logging.getLogger(__name__)


class EventType(enum.Enum):
    """Kinds of event a scheduling policy is told about."""

    TIMER = "Timer"
    TASK_ARRIVAL = "TaskArrival"
    TASK_FINISH = "TaskFinish"
    IO_REQUEST = "IoRequest"
    IO_END = "IoEnd"


@dataclass
class Event:
    """An event at a point in time, optionally about a task."""

    type: EventType
    time: int
    task: Optional[Union[RuntimeTask, TaskInfo]] = None

    def __lt__(self, other: "Event") -> bool:
        # Events are ordered by time only.
        return self.time < other.time

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "time": self.time}
        if self.task is not None:
            data["task"] = self.task.to_dict()
        return data


class Timer:
    """Fires a timer event a fixed interval after the last one was taken."""

    def __init__(self, interval: int) -> None:
        self.interval = interval
        self.prev_time = 0

    def peek(self) -> Event:
        return Event(EventType.TIMER, self.prev_time + self.interval)

    def next(self, cur_time: int) -> Event:
        event = self.peek()
        self.prev_time = cur_time
        return event


class TaskGen:
    """Yields task arrivals from a series, numbering tasks from 1."""

    def __init__(self, serie: Iterable[Task]) -> None:
        self.tasks = [RuntimeTask(task, task_id) for task_id, task in enumerate(serie, 1)]
        self._next = 0

    def has_next(self) -> bool:
        return self._next < len(self.tasks)

    def peek(self) -> Event:
        if not self.has_next():
            raise IndexError("no more tasks to arrive")
        task = self.tasks[self._next]
        return Event(EventType.TASK_ARRIVAL, task.arrival_time, task)

    def next(self) -> Event:
        event = self.peek()
        self._next += 1
        return event


class Cpu:
    """The processor: runs at most one task's CPU slice at a time."""

    def __init__(self) -> None:
        self.idle_duration = 0
        self.prev_time = 0
        self.task: Optional[RuntimeTask] = None

    def has_next(self) -> bool:
        return self.task is not None

    def peek(self) -> Event:
        if self.task is None:
            raise RuntimeError("cpu is idle")
        kind = EventType.TASK_FINISH if self.task.final_slice() else EventType.IO_REQUEST
        return Event(kind, self.prev_time + self.task.slice_remaining(), self.task)

    def progress(self, elapsed: int) -> None:
        if self.task is not None:
            self.task.progress(elapsed)
            if not self.task.cpu_next():
                self.task = None
        else:
            self.idle_duration += elapsed
        self.prev_time += elapsed

    def switch_to(self, task: RuntimeTask) -> None:
        self.task = task

    def set_idle(self) -> None:
        self.task = None

    def current_task_id(self) -> int:
        return self.task.task_id if self.task is not None else 0


class Io:
    """The IO device: serves one task's IO slice and cannot be preempted."""

    def __init__(self) -> None:
        self.idle_duration = 0
        self.prev_time = 0
        self.task: Optional[RuntimeTask] = None

    def has_next(self) -> bool:
        return self.task is not None

    def peek(self) -> Event:
        if self.task is None:
            raise RuntimeError("io is idle")
        return Event(EventType.IO_END, self.prev_time + self.task.slice_remaining(), self.task)

    def progress(self, elapsed: int) -> None:
        if self.task is not None:
            self.task.progress(elapsed)
            if self.task.cpu_next():
                self.task = None
        else:
            self.idle_duration += elapsed
        self.prev_time += elapsed

    def switch_to(self, task: RuntimeTask) -> None:
        if self.task is None:
            self.task = task
        elif self.task.task_id != task.task_id:
            logger.debug("IO is serving, cannot switch")

    def current_task_id(self) -> int:
        return self.task.task_id if self.task is not None else 0
"""Scheduling decisions and a sample priority-then-deadline policy."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from schedsim.event import Event, EventType
from schedsim.task import Priority, TaskInfo


@dataclass(frozen=True)
class Action:
    """Which task should run on the CPU and which on IO; 0 means none."""

    cpu_task: int = 0
    io_task: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"cpuTask": self.cpu_task, "ioTask": self.io_task}


def action_from_dict(data: dict[str, Any]) -> Action:
    """Build an action from ``{"cpuTask": ..., "ioTask": ...}``; missing keys raise KeyError."""
    return Action(cpu_task=int(data["cpuTask"]), io_task=int(data["ioTask"]))


class SchedulerPolicy:
    """Runs high-priority tasks first and, within a priority, the earliest deadline."""

    def __init__(self) -> None:
        self._queue: list[tuple[bool, int, int, TaskInfo]] = []
        self._order = itertools.count()
        self._known: dict[int, TaskInfo] = {}

    def _push(self, task: TaskInfo) -> None:
        key = (task.priority is not Priority.HIGH, task.deadline, next(self._order))
        heapq.heappush(self._queue, (*key, task))

    def _pop(self) -> TaskInfo:
        return heapq.heappop(self._queue)[-1]

    def _find(self, task_id: int) -> Optional[TaskInfo]:
        if task_id == 0:
            return None
        return self._known.get(task_id)

    def policy(
        self, events: Iterable[Event], current_cpu_task: int, current_io_task: int
    ) -> Action:
        """Decide the next action after the given events."""
        cpu_task = self._find(current_cpu_task)
        io_task = self._find(current_io_task)

        for event in events:
            task = event.task
            if event.type is EventType.TASK_ARRIVAL and task is not None:
                self._known[task.task_id] = task
                self._push(task)
            elif event.type is EventType.TASK_FINISH and task is not None:
                self._known.pop(task.task_id, None)
                if cpu_task is not None and cpu_task.task_id == task.task_id:
                    cpu_task = None
            elif event.type is EventType.IO_REQUEST and task is not None:
                if cpu_task is not None and cpu_task.task_id == task.task_id:
                    cpu_task = None
            elif event.type is EventType.IO_END and task is not None:
                if io_task is not None and io_task.task_id == task.task_id:
                    io_task = None
                    self._push(task)

        if cpu_task is None and self._queue:
            cpu_task = self._pop()

        return Action(
            cpu_task=cpu_task.task_id if cpu_task is not None else 0,
            io_task=io_task.task_id if io_task is not None else 0,
        )

    def __call__(
        self, events: Iterable[Event], current_cpu_task: int, current_io_task: int
    ) -> Action:
        return self.policy(events, current_cpu_task, current_io_task)
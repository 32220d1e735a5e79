"""Ways of asking a scheduling policy for a decision."""

from __future__ import annotations

import json
import sys
from typing import Any, Callable, Iterable, Optional, TextIO

from schedsim.event import Event, EventType
from schedsim.policy import Action, action_from_dict


def _dump(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def events_to_dicts(events: Iterable[Event]) -> list[dict[str, Any]]:
    """The JSON-ready form of a list of events."""
    return [event.to_dict() for event in events]


class StreamPolicy:
    """Asks a policy over text streams: one JSON value per line each way."""

    def __init__(self, input: Optional[TextIO] = None, output: Optional[TextIO] = None) -> None:
        self.input = input if input is not None else sys.stdin
        self.output = output if output is not None else sys.stdout
        self._closed = False

    def __call__(
        self, events: Iterable[Event], current_cpu_task: int, current_io_task: int
    ) -> Action:
        if self._closed:
            raise RuntimeError("policy stream already finished")
        self.output.write(_dump(events_to_dicts(events)) + "\n")
        self.output.write(_dump(current_cpu_task) + "\n")
        self.output.write(_dump(current_io_task) + "\n")
        self.output.flush()

        line = self.input.readline()
        while line and not line.strip():
            line = self.input.readline()
        if not line:
            raise EOFError("policy closed its output without answering")
        return action_from_dict(json.loads(line))

    def finish(self) -> None:
        """Tell the policy that the simulation is over."""
        if self._closed:
            return
        self.output.write(_dump("end") + "\n")
        self.output.flush()
        self._closed = True


class DictPolicy:
    """Calls a function with plain dictionaries and reads its answer from a dictionary."""

    def __init__(self, func: Callable[[list[dict[str, Any]], int, int], Any]) -> None:
        if not callable(func):
            raise TypeError("policy function must be callable")
        self.func = func
        self._closed = False

    @staticmethod
    def _event_dict(event: Event) -> dict[str, Any]:
        task: dict[str, Any] = {}
        if event.type is not EventType.TIMER and event.task is not None:
            task = {
                "arrivalTime": event.task.arrival_time,
                "deadline": event.task.deadline,
                "priority": event.task.priority.value,
                "taskId": event.task.task_id,
            }
        return {"task": task, "time": event.time, "type": event.type.value}

    def __call__(
        self, events: Iterable[Event], current_cpu_task: int, current_io_task: int
    ) -> Action:
        if self._closed:
            raise RuntimeError("policy already finished")
        result = self.func(
            [self._event_dict(event) for event in events], current_cpu_task, current_io_task
        )
        if not result:
            return Action()
        return action_from_dict(result)

    def finish(self) -> None:
        """Stop accepting requests."""
        self._closed = True
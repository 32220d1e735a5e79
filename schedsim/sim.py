"""Discrete-event simulation of a CPU and an IO device driven by a scheduling policy."""

from __future__ import annotations

import argparse
import json
import logging
import math
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Sequence

from schedsim.event import Cpu, Event, EventType, Io, TaskGen, Timer
from schedsim.policy import Action, SchedulerPolicy
from schedsim.policy_wrapper import StreamPolicy
from schedsim.task import Priority, RuntimeTask, Task, serie_from_json, serie_needed_time

logger = logging.getLogger(__name__)

Policy = Callable[[list[Event], int, int], Action]

HIGH_WEIGHT = 0.7
LOW_WEIGHT = 0.3
AUTOGRADER_ENV = "WRITE_AUTOGRADER_RESULT"
AUTOGRADER_FILE = ".autograder_result"


class SimulationError(Exception):
    """The run was aborted: the policy misbehaved or the schedule overran."""


@dataclass(frozen=True)
class SimConfig:
    """Simulator settings: the timer interval."""

    timer: int

    def to_dict(self) -> dict[str, Any]:
        return {"timer": self.timer}


def sim_config_from_dict(data: dict[str, Any]) -> SimConfig:
    """Build a configuration from ``{"timer": ...}``; a missing key raises KeyError."""
    return SimConfig(timer=int(data["timer"]))


@dataclass(frozen=True)
class SimResult:
    """Outcome of a simulation run."""

    finish_rate_hi_prio: float
    finish_rate_lo_prio: float
    finish_rate: float
    ave_tl_rate: float
    score: float
    elapsed_time: int
    amplification: float


def _divide(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def strip_events(events: Iterable[Event]) -> list[Event]:
    """Copies of the events carrying only what a policy may see of each task."""
    stripped = []
    for event in events:
        task = event.task
        if isinstance(task, RuntimeTask):
            task = task.info()
        stripped.append(Event(event.type, event.time, task))
    return stripped


def _lookup(active: dict[int, RuntimeTask], task_id: int) -> RuntimeTask:
    try:
        return active[task_id]
    except KeyError:
        raise ValueError(f"task {task_id} is neither waiting nor running") from None


def simulate(serie: Iterable[Task], config: SimConfig, policy: Policy) -> SimResult:
    """Run a task series under ``policy`` and score the schedule it produces."""
    serie = list(serie)
    timer = Timer(config.timer)
    task_gen = TaskGen(serie)
    cpu = Cpu()
    io = Io()

    time = 0
    active: dict[int, RuntimeTask] = {}
    finished_hi = missed_hi = finished_lo = missed_lo = 0
    sum_tl_rate = 0.0
    amplification = 0.0
    last_event_time = -1
    max_time = serie_needed_time(serie)

    while True:
        candidates = [timer.peek()]
        for source in (task_gen, cpu, io):
            if source.has_next():
                candidates.append(source.peek())
        candidates.sort(key=lambda event: event.time)
        now = candidates[0].time
        nearests = [event for event in candidates if event.time == now]

        elapsed = now - time
        time = now
        cpu.progress(elapsed)
        io.progress(elapsed)

        if time == last_event_time:
            raise SimulationError("error")
        if time > max_time:
            raise SimulationError("error TLE")
        last_event_time = time

        for event in nearests:
            if event.type is EventType.TIMER:
                timer.next(time)
            elif event.type is EventType.TASK_ARRIVAL:
                task = event.task
                assert isinstance(task, RuntimeTask)
                task_gen.next()
                active.setdefault(task.task_id, task)
            elif event.type is EventType.TASK_FINISH:
                task = event.task
                assert isinstance(task, RuntimeTask)
                active.pop(task.task_id, None)
                tl_rate = _divide(time - task.arrival_time, task.deadline - task.arrival_time)
                on_time = time <= task.deadline
                if task.priority is Priority.HIGH:
                    if on_time:
                        finished_hi += 1
                    else:
                        missed_hi += 1
                    sum_tl_rate += max(1.0, tl_rate) * HIGH_WEIGHT
                else:
                    if on_time:
                        finished_lo += 1
                    else:
                        missed_lo += 1
                    sum_tl_rate += max(1.0, tl_rate) * LOW_WEIGHT
                amplification += tl_rate

        action = policy(strip_events(nearests), cpu.current_task_id(), io.current_task_id())
        if action.cpu_task == action.io_task and action.cpu_task != 0:
            raise SimulationError("error invalid action")

        if action.cpu_task != 0:
            task = _lookup(active, action.cpu_task)
            if not task.cpu_next():
                raise SimulationError("error invalid action")
            cpu.switch_to(task)
        else:
            cpu.set_idle()
        if action.io_task != 0:
            task = _lookup(active, action.io_task)
            if task.cpu_next():
                raise SimulationError("error invalid action")
            io.switch_to(task)

        if not active and not task_gen.has_next():
            finish = getattr(policy, "finish", None)
            if callable(finish):
                finish()
            break

        if cpu.current_task_id() == 0 and io.current_task_id() == 0 and active:
            logger.debug(
                "machine has been idle since last event, but %d task(s) is/are still pending",
                len(active),
            )

    weight = HIGH_WEIGHT * (finished_hi + missed_hi) + LOW_WEIGHT * (finished_lo + missed_lo)
    weighted_finished = HIGH_WEIGHT * finished_hi + LOW_WEIGHT * finished_lo
    return SimResult(
        finish_rate_hi_prio=_divide(finished_hi, finished_hi + missed_hi),
        finish_rate_lo_prio=_divide(finished_lo, finished_lo + missed_lo),
        finish_rate=_divide(weighted_finished, weight),
        ave_tl_rate=_divide(sum_tl_rate, weight),
        score=_divide(weighted_finished, sum_tl_rate),
        elapsed_time=time,
        amplification=_divide(amplification, len(task_gen.tasks)),
    )


def _write_autograder_result(value: float) -> None:
    if os.environ.get(AUTOGRADER_ENV) == "1":
        Path(AUTOGRADER_FILE).write_text(f"{value:g}\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Simulate a trace file under a configuration file and report the score."""
    parser = argparse.ArgumentParser(
        prog="schedsim-sim", description="Simulate a task trace under a scheduling policy."
    )
    parser.add_argument("config", help="simulator configuration (JSON)")
    parser.add_argument("trace", help="task trace (JSON)")
    parser.add_argument(
        "--builtin",
        action="store_true",
        help="use the built-in priority/deadline policy instead of asking over stdin/stdout",
    )
    args = parser.parse_args(argv)

    config = sim_config_from_dict(json.loads(Path(args.config).read_text()))
    serie = serie_from_json(Path(args.trace).read_text())
    policy: Policy = SchedulerPolicy() if args.builtin else StreamPolicy()

    try:
        result = simulate(serie, config, policy)
    except SimulationError as exc:
        print(json.dumps(str(exc)), flush=True)
        print("0", file=sys.stderr)
        _write_autograder_result(0)
        return 0

    for name in ("finish_rate_hi_prio", "finish_rate_lo_prio", "finish_rate", "ave_tl_rate"):
        print(f"{name}: {getattr(result, name):g}", file=sys.stderr)
    print(f"elapsed_time: {result.elapsed_time}", file=sys.stderr)
    print(f"needed_time: {serie_needed_time(serie)}", file=sys.stderr)
    print(f"amplification: {result.amplification:g}", file=sys.stderr)
    print(f"score: {result.score:g}", flush=True)
    _write_autograder_result(result.score)
    return 0


if __name__ == "__main__":
    sys.exit(main())
# schedsim

A discrete-event simulator for scheduling tasks on one CPU and one IO
device. Each task arrives at a given time, has a deadline and a priority
(`high` or `low`), and is a sequence of alternating CPU and IO slices.
Tasks are numbered from 1 in the order they appear in the trace; 0
means "no task". At every batch of simultaneous events (a timer tick, a
task arrival, a task finishing, a task requesting IO, an IO completing)
a scheduling policy decides which task runs on the CPU and which on the
IO device. At the end the simulator reports how many deadlines were met
and a score.

The package also generates random task traces with configurable mixes
of short, regular and long tasks, arrival patterns and deadline budgets.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Commands

### Simulate a trace

```
schedsim-sim CONFIG.json TRACE.json [--builtin]
```

`CONFIG.json` holds the simulator settings, the timer interval:

```json
{"timer": 100}
```

`TRACE.json` is a list of tasks:

```json
[
  {"arrivalTime": 0, "deadline": 120, "priority": "high",
   "slices": [["CPU", 30], ["IO", 20], ["CPU", 10]]}
]
```

Without `--builtin` the policy is asked over standard input and output.
For each batch of events the simulator writes three JSON lines: the
list of events (each `{"type": ..., "time": ...}`, plus a `"task"`
object with `arrivalTime`, `deadline`, `priority` and `taskId` when the
event concerns a task), the id of the task now on the CPU, and the id of
the task now on IO. It then reads one JSON line of the form
`{"cpuTask": <id>, "ioTask": <id>}` (blank lines are skipped). When
every task is done it writes `"end"`. With `--builtin` the simulator
uses `SchedulerPolicy` instead (see below).

On success, `finish_rate_hi_prio`, `finish_rate_lo_prio`, `finish_rate`,
`ave_tl_rate`, `elapsed_time`, `needed_time` and `amplification` are
written to standard error and `score: <value>` to standard output.

The run is aborted when the policy names the same task for CPU and IO,
puts a task on the CPU whose next slice is IO (or the reverse), or when
the simulation passes the time it would take to run every task back to
back. The error message is then written to standard output as a JSON
string and the score is 0.

If the environment variable `WRITE_AUTOGRADER_RESULT` is `1`, the score
(or 0 on an aborted run) is also written to `.autograder_result` in the
current directory.

### Run the simulator against an external scheduler

```
schedsim-run TRACE_NAME LANGUAGE POLICY
```

Starts a scheduler program and the simulator with their standard input
and output connected to each other, and simulates `./traces/TRACE_NAME`
with `./configs/sim_config.json`. `LANGUAGE` chooses the scheduler
command:

- `java`: `java -cp ./java/target:./java/lib/gson-2.8.5.jar Main POLICY`
- `python`: `python ./python/scheduler.py POLICY`

`POLICY` is passed on as `rr` or `fifo`; anything else is passed as
`new`. A wrong number of arguments or an unknown language prints a
usage line and exits with status 1.

### Generate traces

```
schedsim-trace-gen TRACE_CONFIG.json PREFIX
```

Writes sixteen traces, `PREFIX-1.json` to `PREFIX-16.json`, covering
short, regular, long, mixed and shifting workloads with loose or tight
budgets, random or budget-prone priorities, and Poisson-like or burst
arrivals. Progress (average task duration, task count, file names) is
printed to standard output. The configuration looks like:

```json
{
  "duration": 100000,
  "provision": 0.9,
  "priority_proneness": 0.8,
  "short_task":   {"duration_min": 10, "duration_max": 50,
                   "budget_tight": 1.5, "budget_loose": 3.0,
                   "io_total_long": 0.5, "io_total_short": 0.1,
                   "io_slice_long": 0.2, "io_slice_short": 0.05},
  "regular_task": {"...": "same keys as short_task"},
  "long_task":    {"...": "same keys as short_task"}
}
```

The earlier generator, with its own configuration format, is also
available:

```
schedsim-legacy-trace-gen LEGACY_CONFIG.json PREFIX
```

It writes `PREFIX-1.json` to `PREFIX-10.json` from a configuration with
the keys `duration`, `provision`, `minimal task duration`,
`maximal task duration`, `turnarround amplification low`,
`turnarround amplification high`,
`turnarround amplification variance low`,
`turnarround amplification variance high`, `minimal dominance`,
`maximal dominance`, `io slice duration low` and
`io slice duration high`.

## Using it from Python

```python
import json

from schedsim.policy import SchedulerPolicy
from schedsim.sim import sim_config_from_dict, simulate
from schedsim.task import serie_from_json

with open("trace.json") as fh:
    serie = serie_from_json(json.load(fh))

config = sim_config_from_dict({"timer": 100})
result = simulate(serie, config, SchedulerPolicy())
print(result.score, result.finish_rate, result.elapsed_time)
```

`simulate` returns a `SimResult` and raises `SimulationError` when the
run is aborted.

A policy is any callable taking `(events, current_cpu_task,
current_io_task)` and returning an `Action(cpu_task, io_task)`. If it
also has a `finish()` method, that is called once all tasks are done.

- `schedsim.policy.SchedulerPolicy` keeps a queue ordered by priority
  (high first) and then by earliest deadline, and puts the head of the
  queue on the CPU whenever the CPU is free. It never puts a task on the
  IO device, so it only completes traces whose tasks have no IO slices.
- `schedsim.policy_wrapper.StreamPolicy` speaks the line-based JSON
  protocol described above over any pair of text streams (standard
  input and output by default).
- `schedsim.policy_wrapper.DictPolicy` wraps a plain function that
  receives the events as dictionaries and returns
  `{"cpuTask": ..., "ioTask": ...}`; a falsy return means
  `Action(0, 0)`.

The building blocks of the simulation (`Timer`, `TaskGen`, `Cpu`, `Io`
and `Event` in `schedsim.event`; `Task`, `RuntimeTask` and the JSON
helpers `task_from_dict`, `serie_from_json`, `serie_to_json` in
`schedsim.task`) can be used on their own.

For generating traces programmatically, see `TraceGenerator`,
`generate` and `write_serie` in `schedsim.trace_gen`, with the workload
shapes described by `TaskTrait`, `BudgetTrait`, `PriorityTrait` and
`ArrivalTrait` in `schedsim.traits`. Pass a seeded `random.Random` for
reproducible traces. The earlier generator is `generate_serie` and
`generate` in `schedsim.legacy_trace_gen`.

## What it does not include

The package does not contain the external scheduler programs that
`schedsim-run` starts (`./python/scheduler.py` or the `Main` class on
the Java class path); those, and the `./configs` and `./traces`
directories, have to be supplied in the working directory.
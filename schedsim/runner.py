"""Start a scheduler process and the simulator, wired to each other through pipes."""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Optional, Sequence

SIM_CONFIG = "./configs/sim_config.json"
TRACE_DIR = "./traces/"
JAVA_CLASSPATH = "./java/target:./java/lib/gson-2.8.5.jar"
PYTHON_SCHEDULER = "./python/scheduler.py"


def scheduler_command(language: str, policy_name: str) -> list[str]:
    """The command that starts a scheduler; unknown policy names mean "new"."""
    policy = policy_name if policy_name in ("rr", "fifo") else "new"
    if language == "java":
        return ["java", "-cp", JAVA_CLASSPATH, "Main", policy]
    if language == "python":
        return ["python", PYTHON_SCHEDULER, policy]
    raise ValueError(f"unknown scheduler language: {language!r}")


def run(trace_name: str, language: str, policy_name: str) -> int:
    """Run the simulator on a trace against a scheduler; returns the simulator's status."""
    scheduler_cmd = scheduler_command(language, policy_name)
    sim_cmd = [sys.executable, "-m", "schedsim.sim", SIM_CONFIG, TRACE_DIR + trace_name]

    scheduler = subprocess.Popen(scheduler_cmd, stdin=subprocess.PIPE, stdout=subprocess.PIPE)
    try:
        sim = subprocess.Popen(sim_cmd, stdin=scheduler.stdout, stdout=scheduler.stdin)
    except BaseException:
        scheduler.kill()
        scheduler.wait()
        raise
    # The simulator holds its own copies of the pipe ends now.
    scheduler.stdin.close()
    scheduler.stdout.close()
    status = sim.wait()
    scheduler.wait()
    return status


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line: <trace> <java|python> <rr|fifo|new>."""
    args = list(sys.argv[1:] if argv is None else argv)
    prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "schedsim-run"
    if len(args) != 3:
        print(f"Usage: {prog} <trace> <java|python> <rr|fifo|new>", file=sys.stderr)
        return 1
    trace_name, language, policy_name = args
    try:
        run(trace_name, language, policy_name)
    except ValueError as exc:
        print(f"Usage: {prog} <trace> <java|python> <rr|fifo|new> ({exc})", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
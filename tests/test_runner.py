import sys
from unittest import mock

import pytest

from schedsim.runner import main, run, scheduler_command


@pytest.mark.parametrize("policy", ["rr", "fifo"])
def test_python_scheduler_command(policy):
    assert scheduler_command("python", policy) == ["python", "./python/scheduler.py", policy]


def test_unknown_policy_means_new():
    assert scheduler_command("python", "sjf")[-1] == "new"
    assert scheduler_command("java", "anything")[-1] == "new"


def test_java_scheduler_command():
    assert scheduler_command("java", "fifo") == [
        "java",
        "-cp",
        "./java/target:./java/lib/gson-2.8.5.jar",
        "Main",
        "fifo",
    ]


def test_unknown_language():
    with pytest.raises(ValueError):
        scheduler_command("rust", "rr")


def test_run_wires_processes_together():
    scheduler = mock.MagicMock()
    sim = mock.MagicMock()
    sim.wait.return_value = 7
    with mock.patch("subprocess.Popen", side_effect=[scheduler, sim]) as popen:
        status = run("trace-1.json", "python", "rr")
    assert status == 7
    first, second = popen.call_args_list
    assert first.args[0] == ["python", "./python/scheduler.py", "rr"]
    assert second.args[0] == [
        sys.executable,
        "-m",
        "schedsim.sim",
        "./configs/sim_config.json",
        "./traces/trace-1.json",
    ]
    assert second.kwargs["stdin"] is scheduler.stdout
    assert second.kwargs["stdout"] is scheduler.stdin
    assert scheduler.stdin.close.call_count == 1
    assert scheduler.wait.call_count == 1


def test_run_rejects_language_before_starting():
    with mock.patch("subprocess.Popen") as popen:
        with pytest.raises(ValueError):
            run("trace-1.json", "cobol", "rr")
    assert popen.call_count == 0


def test_main_wrong_argument_count(capsys):
    assert main(["trace-1.json"]) == 1
    assert "Usage" in capsys.readouterr().err


def test_main_unknown_language(capsys):
    with mock.patch("subprocess.Popen") as popen:
        assert main(["trace-1.json", "cobol", "rr"]) == 1
    assert popen.call_count == 0
    assert "Usage" in capsys.readouterr().err
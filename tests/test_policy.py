import pytest

from schedsim.event import Event, EventType
from schedsim.policy import Action, SchedulerPolicy, action_from_dict
from schedsim.task import Priority, TaskInfo


def info(task_id, deadline, priority=Priority.HIGH, arrival=0):
    return TaskInfo(task_id, arrival, deadline, priority)


def arrival(task, time=0):
    return Event(EventType.TASK_ARRIVAL, time, task)


def test_action_to_dict():
    assert Action(3, 0).to_dict() == {"cpuTask": 3, "ioTask": 0}


def test_action_round_trip():
    action = Action(4, 7)
    assert action_from_dict(action.to_dict()) == action


def test_action_from_dict_missing_key():
    with pytest.raises(KeyError):
        action_from_dict({"cpuTask": 1})


def test_empty_policy_is_idle():
    policy = SchedulerPolicy()
    assert policy([Event(EventType.TIMER, 10)], 0, 0) == Action(0, 0)


def test_high_priority_first():
    policy = SchedulerPolicy()
    low = info(1, 5, Priority.LOW)
    high = info(2, 100, Priority.HIGH)
    assert policy.policy([arrival(low), arrival(high)], 0, 0) == Action(2, 0)


def test_earlier_deadline_within_priority():
    policy = SchedulerPolicy()
    late = info(1, 50)
    early = info(2, 20)
    assert policy([arrival(late), arrival(early)], 0, 0).cpu_task == 2


def test_running_task_kept():
    policy = SchedulerPolicy()
    first = info(1, 50, Priority.LOW)
    assert policy([arrival(first)], 0, 0).cpu_task == 1
    urgent = info(2, 10, Priority.HIGH)
    assert policy([arrival(urgent, 5)], 1, 0).cpu_task == 1


def test_finish_runs_next():
    policy = SchedulerPolicy()
    a, b = info(1, 10), info(2, 20)
    assert policy([arrival(a), arrival(b)], 0, 0).cpu_task == 1
    finish = Event(EventType.TASK_FINISH, 8, a)
    assert policy([finish], 1, 0).cpu_task == 2


def test_io_end_requeues_task():
    policy = SchedulerPolicy()
    a = info(1, 10)
    assert policy([arrival(a)], 0, 0).cpu_task == 1
    request = Event(EventType.IO_REQUEST, 3, a)
    assert policy([request], 1, 1) == Action(0, 1)
    end = Event(EventType.IO_END, 6, a)
    assert policy([end], 0, 1) == Action(1, 0)
import pytest

from schedsim.event import Cpu, Event, EventType, Io, TaskGen, Timer
from schedsim.task import ComputeType, Priority, RuntimeTask, Task


def make_task(arrival=0, slices=None):
    if slices is None:
        slices = ((ComputeType.CPU, 4), (ComputeType.IO, 3), (ComputeType.CPU, 2))
    return Task(arrival, arrival + 50, Priority.HIGH, tuple(slices))


def test_event_type_names_in_serialised_events():
    names = [Event(event_type, 0).to_dict()["type"] for event_type in EventType]
    assert names == [
        "Timer",
        "TaskArrival",
        "TaskFinish",
        "IoRequest",
        "IoEnd",
    ]


def test_event_ordering_by_time_is_stable():
    a = Event(EventType.TIMER, 5)
    b = Event(EventType.TASK_ARRIVAL, 5)
    c = Event(EventType.IO_END, 2)
    assert sorted([a, b, c]) == [c, a, b]
    assert c < a
    assert not (a < b)


def test_event_to_dict_without_task():
    assert Event(EventType.TIMER, 10).to_dict() == {"type": "Timer", "time": 10}


def test_event_to_dict_with_task_info():
    info = RuntimeTask(make_task(), 3).info()
    data = Event(EventType.TASK_ARRIVAL, 0, info).to_dict()
    assert data["type"] == "TaskArrival"
    assert data["task"] == info.to_dict()


def test_timer_peek_and_next():
    timer = Timer(10)
    assert timer.peek().type is EventType.TIMER
    assert timer.peek().time == 10
    fired = timer.next(25)
    assert fired.time == 10
    assert timer.peek().time == 35


def test_task_gen_numbers_tasks_and_yields_in_order():
    gen = TaskGen([make_task(0), make_task(5)])
    assert [t.task_id for t in gen.tasks] == [1, 2]
    first = gen.next()
    assert first.type is EventType.TASK_ARRIVAL
    assert first.time == 0
    assert first.task is gen.tasks[0]
    assert gen.peek().time == 5
    gen.next()
    assert not gen.has_next()
    with pytest.raises(IndexError):
        gen.peek()


def test_cpu_idle_behaviour():
    cpu = Cpu()
    assert not cpu.has_next()
    assert cpu.current_task_id() == 0
    with pytest.raises(RuntimeError):
        cpu.peek()
    cpu.progress(6)
    assert cpu.idle_duration == 6
    assert cpu.prev_time == 6


def test_cpu_and_io_run_a_task():
    task = RuntimeTask(make_task(), 1)
    cpu, io = Cpu(), Io()
    cpu.switch_to(task)
    assert cpu.current_task_id() == 1
    event = cpu.peek()
    assert event.type is EventType.IO_REQUEST
    assert event.time == 4
    assert event.task is task

    cpu.progress(4)
    io.progress(4)
    assert cpu.current_task_id() == 0
    assert not task.cpu_next()

    io.switch_to(task)
    assert io.current_task_id() == 1
    io_event = io.peek()
    assert io_event.type is EventType.IO_END
    assert io_event.time == 7

    io.progress(3)
    cpu.progress(3)
    assert io.current_task_id() == 0
    assert task.cpu_next()

    cpu.switch_to(task)
    assert cpu.peek().type is EventType.TASK_FINISH
    cpu.progress(2)
    assert not cpu.has_next()
    assert task.current_slice == len(task.slices)


def test_cpu_set_idle():
    cpu = Cpu()
    cpu.switch_to(RuntimeTask(make_task(), 4))
    cpu.set_idle()
    assert cpu.current_task_id() == 0
    assert not cpu.has_next()


def test_io_cannot_switch_while_serving():
    first = RuntimeTask(make_task(slices=[(ComputeType.IO, 5), (ComputeType.CPU, 1)]), 1)
    second = RuntimeTask(make_task(slices=[(ComputeType.IO, 2), (ComputeType.CPU, 1)]), 2)
    io = Io()
    io.switch_to(first)
    io.switch_to(second)
    assert io.current_task_id() == 1
    assert io.peek().task is first


def test_io_peek_when_idle_raises():
    with pytest.raises(RuntimeError):
        Io().peek()
from __future__ import annotations

from dataclasses import dataclass

import pytest

from visual_search_circle.keyboard import KeyboardListener, KeyResponse, compare_keys
from visual_search_circle.timing import ClockScheduler


@dataclass
class FakeClock:
    t: float = 0.0

    def now_ms(self) -> float:
        return self.t

    def advance(self, dt_ms: float) -> None:
        self.t += float(dt_ms)


def test_scheduler_fires_due_timers_in_due_order() -> None:
    clock = FakeClock()
    sched = ClockScheduler(clock)
    fired: list[str] = []

    sched.schedule(lambda: fired.append("late"), 300)
    sched.schedule(lambda: fired.append("early"), 100)
    sched.schedule(lambda: fired.append("tie"), 100)

    clock.advance(99)
    assert sched.update() == 0
    clock.advance(250)
    assert sched.update() == 2
    assert fired == ["early", "tie"]
    clock.advance(1)
    sched.update()
    assert fired == ["early", "tie", "late"]
    assert sched.pending() == 0


def test_scheduler_runs_zero_delay_timers_scheduled_by_callbacks() -> None:
    clock = FakeClock()
    sched = ClockScheduler(clock)
    fired: list[str] = []

    def first() -> None:
        fired.append("first")
        sched.schedule(lambda: fired.append("chained"), 0)

    sched.schedule(first, 10)
    clock.advance(10)
    assert sched.update() == 2
    assert fired == ["first", "chained"]


def test_cancelled_timer_never_fires_and_double_cancel_is_noop() -> None:
    clock = FakeClock()
    sched = ClockScheduler(clock)
    fired: list[int] = []

    handle = sched.schedule(lambda: fired.append(1), 50)
    sched.cancel(handle)
    sched.cancel(handle)
    clock.advance(100)
    sched.update()

    assert fired == []
    assert sched.pending() == 0


def test_compare_keys_is_case_insensitive() -> None:
    assert compare_keys("N", "n")
    assert not compare_keys("n", "z")
    assert not compare_keys(None, "n")


def test_listener_filters_keys_measures_rt_and_fires_once() -> None:
    clock = FakeClock(t=1000.0)
    kb = KeyboardListener(clock)
    got: list[KeyResponse] = []

    kb.register(valid_keys=("n", "z"), callback=got.append)
    clock.advance(250)
    kb.key_down("x")
    assert got == []

    kb.key_down("z")
    kb.key_up("z")
    kb.key_down("n")

    assert got == [KeyResponse(key="z", rt_ms=250.0)]
    assert kb.active_count() == 0


def test_listener_ignores_held_key_until_released() -> None:
    clock = FakeClock()
    kb = KeyboardListener(clock)
    got: list[KeyResponse] = []

    kb.key_down("n")  # pressed before the listener exists
    kb.register(valid_keys=("n",), callback=got.append)
    clock.advance(40)
    kb.key_down("n")  # auto-repeat
    assert got == []

    kb.key_up("n")
    clock.advance(60)
    kb.key_down("n")
    assert [r.rt_ms for r in got] == [pytest.approx(100.0)]


def test_persistent_listener_without_rt() -> None:
    clock = FakeClock()
    kb = KeyboardListener(clock)
    got: list[KeyResponse] = []

    handle = kb.register(valid_keys=("a",), callback=got.append, measure_rt=False, single_shot=False)
    for _ in range(3):
        kb.key_down("a")
        kb.key_up("a")
    assert [r.rt_ms for r in got] == [None, None, None]

    kb.cancel(handle)
    kb.key_down("a")
    assert len(got) == 3

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from .clock import Clock


@dataclass(eq=False, slots=True)
class TimerHandle:
    due_ms: float
    seq: int
    callback: Callable[[], None] = field(repr=False)
    active: bool = True


class Scheduler(Protocol):
    def schedule(self, callback: Callable[[], None], delay_ms: float) -> TimerHandle: ...
    def cancel(self, handle: TimerHandle) -> None: ...


class ClockScheduler:
    """Frame-polled one-shot timers.

    Nothing fires on its own: the host calls ``update()`` once per frame and
    every timer whose due time has passed runs then, earliest first.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._timers: list[TimerHandle] = []
        self._seq = itertools.count()

    def schedule(self, callback: Callable[[], None], delay_ms: float) -> TimerHandle:
        due = self._clock.now_ms() + max(0.0, float(delay_ms))
        handle = TimerHandle(due_ms=due, seq=next(self._seq), callback=callback)
        self._timers.append(handle)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        if not handle.active:
            return
        handle.active = False
        self._timers.remove(handle)

    def pending(self) -> int:
        return len(self._timers)

    def update(self) -> int:
        """Fire due timers; returns how many fired."""

        fired = 0
        while True:
            now = self._clock.now_ms()
            due = [t for t in self._timers if t.due_ms <= now]
            if not due:
                return fired
            handle = min(due, key=lambda t: (t.due_ms, t.seq))
            # Callbacks may schedule or cancel timers.
            handle.active = False
            self._timers.remove(handle)
            handle.callback()
            fired += 1

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

from .clock import Clock

log = logging.getLogger(__name__)


def compare_keys(a: str | None, b: str | None) -> bool:
    """Case-insensitive key identity; ``None`` never matches."""

    if a is None or b is None:
        return False
    return str(a).casefold() == str(b).casefold()


@dataclass(frozen=True, slots=True)
class KeyResponse:
    key: str
    rt_ms: float | None


@dataclass(eq=False, slots=True)
class ListenerHandle:
    valid_keys: tuple[str, ...]
    callback: Callable[[KeyResponse], None] = field(repr=False)
    started_ms: float | None
    single_shot: bool
    ignore_held: bool
    active: bool = True


class KeyboardResponder(Protocol):
    def register(
        self,
        *,
        valid_keys: Iterable[str],
        callback: Callable[[KeyResponse], None],
        measure_rt: bool = True,
        single_shot: bool = True,
        ignore_held: bool = True,
    ) -> ListenerHandle: ...

    def cancel(self, handle: ListenerHandle) -> None: ...


class KeyboardListener:
    """Dispatches host key events to registered response listeners.

    The host forwards every press and release with ``key_down``/``key_up``.
    Reaction time runs from listener registration to the press.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._listeners: list[ListenerHandle] = []
        self._held: set[str] = set()

    def register(
        self,
        *,
        valid_keys: Iterable[str],
        callback: Callable[[KeyResponse], None],
        measure_rt: bool = True,
        single_shot: bool = True,
        ignore_held: bool = True,
    ) -> ListenerHandle:
        handle = ListenerHandle(
            valid_keys=tuple(valid_keys),
            callback=callback,
            started_ms=self._clock.now_ms() if measure_rt else None,
            single_shot=single_shot,
            ignore_held=ignore_held,
        )
        self._listeners.append(handle)
        return handle

    def cancel(self, handle: ListenerHandle) -> None:
        if not handle.active:
            return
        handle.active = False
        self._listeners.remove(handle)

    def active_count(self) -> int:
        return len(self._listeners)

    def key_down(self, key: str) -> None:
        norm = str(key).casefold()
        repeat = norm in self._held
        self._held.add(norm)
        now = self._clock.now_ms()

        for handle in list(self._listeners):
            if not handle.active:
                continue
            if not any(compare_keys(key, k) for k in handle.valid_keys):
                continue
            if handle.ignore_held and repeat:
                log.debug("ignoring held key %r", key)
                continue

            rt = None if handle.started_ms is None else now - handle.started_ms
            if handle.single_shot:
                self.cancel(handle)
            handle.callback(KeyResponse(key=str(key), rt_ms=rt))

    def key_up(self, key: str) -> None:
        self._held.discard(str(key).casefold())

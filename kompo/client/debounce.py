"""
Debounce: last call wins.

Every call resets the timer; only the arguments of the last call reach the
wrapped function once the timer expires. Timers come from a scheduler so
tests can drive time by hand.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Any, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Timers on daemon threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class AsyncioScheduler:
    """Timers on an asyncio event loop (the running one by default)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self.loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self.loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


def default_scheduler() -> Scheduler:
    """The running event loop when there is one, threads otherwise."""
    try:
        return AsyncioScheduler(asyncio.get_running_loop())
    except RuntimeError:
        return ThreadingScheduler()


class Debounced:
    """Wraps ``fn`` so that it runs ``wait_ms`` after the last call."""

    def __init__(self, fn: Callable[..., Any], wait_ms: int | None, scheduler: Scheduler | None = None):
        self.fn = fn
        self.wait = max(wait_ms or 0, 0) / 1000
        self.scheduler = scheduler or default_scheduler()
        self._lock = threading.Lock()
        self._handle: TimerHandle | None = None
        self._args: tuple[tuple[Any, ...], dict[str, Any]] = ((), {})
        self._generation = 0

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._args = (args, kwargs)
            self._generation += 1
            generation = self._generation
            self._handle = self.scheduler.call_later(self.wait, lambda: self._fire(generation))

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None

    def flush(self) -> None:
        """Run the pending call now, if any."""
        with self._lock:
            if self._handle is None:
                return
            self._handle.cancel()
            generation = self._generation
        self._fire(generation)

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._handle is None or generation != self._generation:
                return
            self._handle = None
            args, kwargs = self._args
        self.fn(*args, **kwargs)

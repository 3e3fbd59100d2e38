"""
Debounce -- last call wins.

A hand-driven scheduler stands in for real timers; the threading and
asyncio schedulers get one smoke test each.
"""

from __future__ import annotations

import asyncio
import threading

import pytest

from kompo.client.debounce import AsyncioScheduler, Debounced, ThreadingScheduler


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    def __init__(self):
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def run_pending(self):
        for timer in list(self.timers):
            if not timer.cancelled:
                timer.cancelled = True
                timer.callback()


@pytest.fixture
def scheduler():
    return FakeScheduler()


class TestDebounced:
    def test_last_call_wins(self, scheduler):
        calls = []
        debounced = Debounced(calls.append, 300, scheduler)

        for value in range(5):
            debounced(value)

        assert calls == []
        assert [t.cancelled for t in scheduler.timers] == [True, True, True, True, False]
        assert scheduler.timers[-1].delay == 0.3

        scheduler.run_pending()

        assert calls == [4]
        assert not debounced.pending

    def test_keyword_arguments_are_kept(self, scheduler):
        calls = []
        debounced = Debounced(lambda *a, **kw: calls.append((a, kw)), 10, scheduler)

        debounced(1, key="x")
        scheduler.run_pending()

        assert calls == [((1,), {"key": "x"})]

    def test_stale_timer_does_nothing(self, scheduler):
        calls = []
        debounced = Debounced(calls.append, 100, scheduler)

        debounced("first")
        debounced("second")
        scheduler.timers[0].callback()

        assert calls == []
        scheduler.run_pending()
        assert calls == ["second"]

    def test_flush_runs_now(self, scheduler):
        calls = []
        debounced = Debounced(calls.append, 100, scheduler)

        debounced("now")
        debounced.flush()
        scheduler.run_pending()

        assert calls == ["now"]

    def test_flush_without_pending_call(self, scheduler):
        calls = []
        Debounced(calls.append, 100, scheduler).flush()
        assert calls == []

    def test_cancel(self, scheduler):
        calls = []
        debounced = Debounced(calls.append, 100, scheduler)

        debounced("dropped")
        debounced.cancel()
        scheduler.run_pending()

        assert calls == []
        assert not debounced.pending

    @pytest.mark.parametrize("wait_ms,delay", [(None, 0), (0, 0), (-5, 0), (1500, 1.5)])
    def test_wait(self, scheduler, wait_ms, delay):
        Debounced(print, wait_ms, scheduler)()
        assert scheduler.timers[0].delay == delay

    def test_calls_after_firing_start_a_new_window(self, scheduler):
        calls = []
        debounced = Debounced(calls.append, 100, scheduler)

        debounced(1)
        scheduler.run_pending()
        debounced(2)
        scheduler.run_pending()

        assert calls == [1, 2]


class TestSchedulers:
    def test_threading_scheduler(self):
        calls = []
        done = threading.Event()

        def record(value):
            calls.append(value)
            done.set()

        debounced = Debounced(record, 20, ThreadingScheduler())
        debounced("a")
        debounced("b")

        assert done.wait(2)
        assert calls == ["b"]

    @pytest.mark.asyncio
    async def test_asyncio_scheduler(self):
        calls = []
        debounced = Debounced(calls.append, 20, AsyncioScheduler())

        debounced("a")
        debounced("b")
        await asyncio.sleep(0.1)

        assert calls == ["b"]

"""Tests for RepeatingTimer, ManualScheduler and AsyncioScheduler."""

from __future__ import annotations

import asyncio
import logging

import pytest

from research_stream.infrastructure.scheduling import AsyncioScheduler, RepeatingTimer
from research_stream.testing.clock import ManualScheduler


class TestManualScheduler:

    def test_runs_due_callbacks_in_order(self) -> None:
        sched = ManualScheduler()
        calls: list[str] = []
        sched.call_later(2.0, lambda: calls.append("b"))
        sched.call_later(1.0, lambda: calls.append("a"))
        sched.call_later(5.0, lambda: calls.append("c"))
        assert sched.advance(3.0) == 2
        assert calls == ["a", "b"]
        assert sched.time() == pytest.approx(3.0)

    def test_cancelled_callbacks_skipped(self) -> None:
        sched = ManualScheduler()
        calls: list[int] = []
        handle = sched.call_later(1.0, lambda: calls.append(1))
        handle.cancel()
        assert sched.advance(2.0) == 0
        assert calls == []
        assert sched.pending == []

    def test_negative_advance_rejected(self) -> None:
        with pytest.raises(ValueError):
            ManualScheduler().advance(-1.0)


class TestRepeatingTimer:

    def test_fires_every_interval(self) -> None:
        sched = ManualScheduler()
        calls: list[float] = []
        timer = RepeatingTimer(sched, 1.0, lambda: calls.append(sched.time())).start()
        sched.advance(3.5)
        assert calls == [1.0, 2.0, 3.0]
        assert timer.fired == 3

    def test_cancel_is_idempotent_and_final(self) -> None:
        sched = ManualScheduler()
        calls: list[int] = []
        timer = RepeatingTimer(sched, 1.0, lambda: calls.append(1)).start()
        sched.advance(1.0)
        timer.cancel()
        timer.cancel()
        sched.advance(5.0)
        assert calls == [1]
        assert timer.cancelled
        with pytest.raises(RuntimeError):
            timer.start()

    def test_failing_callback_keeps_cadence(self, caplog: pytest.LogCaptureFixture) -> None:
        sched = ManualScheduler()
        timer = RepeatingTimer(sched, 1.0, lambda: 1 / 0, name="broken").start()
        with caplog.at_level(logging.ERROR):
            sched.advance(3.0)
        assert timer.fired == 3
        assert "broken" in caplog.text

    def test_invalid_interval(self) -> None:
        with pytest.raises(ValueError):
            RepeatingTimer(ManualScheduler(), 0, lambda: None)


class TestAsyncioScheduler:

    @pytest.mark.asyncio
    async def test_timer_on_running_loop(self) -> None:
        sched = AsyncioScheduler()
        fired = asyncio.Event()
        count = 0

        def on_fire() -> None:
            nonlocal count
            count += 1
            if count == 2:
                fired.set()

        timer = RepeatingTimer(sched, 0.01, on_fire).start()
        await asyncio.wait_for(fired.wait(), timeout=2.0)
        timer.cancel()
        assert count >= 2
        assert sched.time() == pytest.approx(asyncio.get_running_loop().time(), abs=0.5)

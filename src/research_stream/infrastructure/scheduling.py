"""Cancellable timers for the single-threaded engine.

All engine work runs inside event handlers on one thread.  Periodic work
(the progress tick, the step cycle) is driven by a ``Scheduler`` that hands
out cancellable handles; in production that is the asyncio event loop, in
tests :class:`research_stream.testing.ManualScheduler`.

A :class:`RepeatingTimer` owns exactly one pending handle at a time and is
cancelled at most once: after ``cancel()`` its callback never runs again,
even if the underlying handle already fired into the loop's ready queue.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay and report the time."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def time(self) -> float: ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Parameters
    ----------
    loop:
        The loop to schedule on.  Defaults to the running loop at the time
        of the first call.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(delay, callback)

    def time(self) -> float:
        return self.loop.time()


class RepeatingTimer:
    """Run *callback* every *interval* seconds until cancelled.

    The timer re-arms itself before invoking the callback, so a callback that
    raises does not stop the cadence; the error is logged.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval: float,
        callback: Callable[[], None],
        name: str = "timer",
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._name = name
        self._handle: TimerHandle | None = None
        self._cancelled = False
        self.fired = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> RepeatingTimer:
        if self._cancelled:
            raise RuntimeError(f"{self._name} was cancelled and cannot restart")
        if self._handle is None:
            self._arm()
        return self

    def cancel(self) -> None:
        """Stop the timer.  Further calls are no-ops."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        logger.debug("%s cancelled after %d firings", self._name, self.fired)

    def _arm(self) -> None:
        self._handle = self._scheduler.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._arm()
        self.fired += 1
        try:
            self._callback()
        except Exception:
            logger.exception("Error in %s callback", self._name)

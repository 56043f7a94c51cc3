"""Heuristic progress estimator for the in-flight turn.

The backend emits no progress signal, so this is a UX approximation and
nothing more: a plausible ETA that scales mildly with query length, a
progress fraction that follows the clock but stays capped below 1.0 until
the real response completes, and a cosmetic pipeline-stage label that cycles
on its own faster cadence.  Nothing here should be read as real backend
progress.

Each ``start()`` opens a new *generation*.  Timers belonging to an older
generation are cancelled when superseded, and a stale timer callback that
still reaches the estimator is ignored, so a rapid second submission can
never be corrupted by the first one's clock.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace

import numpy as np

from research_stream.domain.enums import LoadingSpeed
from research_stream.domain.events import (
    ProgressCompleted,
    ProgressStarted,
    ProgressTicked,
)
from research_stream.domain.values import ProgressState, ProgressView
from research_stream.infrastructure.config import ProgressConfig, StepConfig
from research_stream.infrastructure.event_bus import EventBus
from research_stream.infrastructure.scheduling import RepeatingTimer, Scheduler

logger = logging.getLogger(__name__)


def estimate_total_seconds(
    query_length: int,
    config: ProgressConfig,
    rng: np.random.Generator,
) -> int:
    """Return ``base + min(cap_extra, len // divisor) + jitter`` in whole seconds.

    The result always lies in ``[base, base + cap_extra + jitter_max]``.
    """
    if query_length < 0:
        raise ValueError(f"query_length must be >= 0, got {query_length}")
    extra = min(config.cap_extra_seconds, query_length // config.length_divisor)
    jitter = int(rng.integers(0, config.jitter_max_seconds + 1))
    return config.base_seconds + extra + jitter


class ProgressEstimator:
    """Clock-driven progress model for one active turn at a time.

    Parameters
    ----------
    scheduler:
        Source of time and cancellable timers.
    config:
        ETA constants.  Defaults to :class:`ProgressConfig`.
    steps:
        Stage labels and cadence.  Defaults to :class:`StepConfig`.
    rng:
        Generator for the ETA jitter.  Seed it for reproducible estimates.
    event_bus:
        Optional bus for ``ProgressStarted`` / ``ProgressTicked`` /
        ``ProgressCompleted``.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: ProgressConfig | None = None,
        steps: StepConfig | None = None,
        rng: np.random.Generator | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._config = config or ProgressConfig()
        self._config.validate()
        self._steps = steps or StepConfig()
        self._steps.validate()
        self._rng = rng if rng is not None else np.random.default_rng()
        self._bus = event_bus

        self._state = ProgressState()
        self._generation = 0
        self._tick_timer: RepeatingTimer | None = None
        self._step_timer: RepeatingTimer | None = None

    # -- read side ---------------------------------------------------------

    @property
    def state(self) -> ProgressState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_active(self) -> bool:
        return self._state.active

    @property
    def step_labels(self) -> tuple[str, ...]:
        return self._steps.labels

    @property
    def speed(self) -> LoadingSpeed:
        return self._steps.speed

    def view(self) -> ProgressView:
        """Return the displayable ``(fraction, remaining, label)`` triple."""
        labels = self._steps.labels
        return ProgressView(
            progress_fraction=self._state.progress_fraction,
            remaining_seconds=self._state.remaining_seconds,
            active_step_label=labels[self._state.active_step_index % len(labels)],
            bar_percent=self._state.bar_percent,
            active=self._state.active,
        )

    # -- lifecycle -----------------------------------------------------------

    def start(self, query: str) -> ProgressState:
        """Begin estimating for *query*, superseding any running estimate."""
        if self._state.active:
            logger.debug("Superseding progress generation %d", self._generation)
        self._teardown()
        self._generation += 1
        generation = self._generation

        total = estimate_total_seconds(len(query), self._config, self._rng)
        self._state = ProgressState(
            started_at=self._scheduler.time(),
            estimated_total_seconds=total,
            remaining_seconds=total,
            active=True,
        )
        self._tick_timer = RepeatingTimer(
            self._scheduler,
            self._config.tick_interval_seconds,
            lambda: self._on_tick(generation),
            name=f"progress-tick#{generation}",
        ).start()
        self._start_step_timer()

        logger.debug("Progress generation %d started, estimate %ds", generation, total)
        self._publish(ProgressStarted(
            source_id="progress",
            generation=generation,
            estimated_total_seconds=total,
        ))
        return self._state

    def tick(self) -> ProgressState:
        """Recompute elapsed, remaining and fraction from the clock."""
        state = self._state
        if not state.active or state.started_at is None:
            return state
        elapsed = max(0, math.floor(self._scheduler.time() - state.started_at))
        total = state.estimated_total_seconds
        fraction = min(self._config.max_active_fraction, elapsed / max(1, total))
        self._state = replace(
            state,
            elapsed_seconds=elapsed,
            remaining_seconds=max(0, total - elapsed),
            progress_fraction=max(state.progress_fraction, fraction),
        )
        self._publish(ProgressTicked(
            source_id="progress",
            generation=self._generation,
            state=self._state,
        ))
        return self._state

    def advance_step(self) -> int:
        """Move to the next stage label (wrapping) and return its index."""
        if not self._state.active:
            return self._state.active_step_index
        index = (self._state.active_step_index + 1) % len(self._steps.labels)
        self._state = replace(self._state, active_step_index=index)
        return index

    def complete(self) -> ProgressState:
        """Snap to 1.0 / 0s remaining and stop all timers."""
        if not self._state.active:
            return self._state
        self._teardown()
        self._state = replace(
            self._state,
            progress_fraction=1.0,
            remaining_seconds=0,
            active=False,
            completed=True,
        )
        logger.debug("Progress generation %d completed", self._generation)
        self._publish(ProgressCompleted(source_id="progress", generation=self._generation))
        return self._state

    def reset(self) -> None:
        """Stop all timers and return to the idle state."""
        self._teardown()
        self._state = ProgressState()

    def set_speed(self, speed: LoadingSpeed) -> None:
        """Change the step cadence; a running step timer is rescheduled."""
        if speed is self._steps.speed:
            return
        self._steps = replace(self._steps, speed=speed)
        if self._step_timer is not None:
            self._step_timer.cancel()
            self._step_timer = None
            self._start_step_timer()

    # -- internals -----------------------------------------------------------

    def _start_step_timer(self) -> None:
        generation = self._generation
        self._step_timer = RepeatingTimer(
            self._scheduler,
            self._steps.cycle_seconds,
            lambda: self._on_step(generation),
            name=f"progress-step#{generation}",
        ).start()

    def _on_tick(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Ignoring stale tick from generation %d", generation)
            return
        self.tick()

    def _on_step(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Ignoring stale step from generation %d", generation)
            return
        self.advance_step()

    def _teardown(self) -> None:
        for timer in (self._tick_timer, self._step_timer):
            if timer is not None:
                timer.cancel()
        self._tick_timer = None
        self._step_timer = None

    def _publish(self, event: ProgressStarted | ProgressTicked | ProgressCompleted) -> None:
        if self._bus is not None:
            self._bus.publish(event)

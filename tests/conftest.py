"""Shared fixtures for the research stream test suite."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
import pytest

from research_stream.engine import ResearchEngine, build_engine
from research_stream.infrastructure.config import EngineConfig
from research_stream.infrastructure.event_bus import EventBus, EventLog
from research_stream.infrastructure.message_store import MessageStore
from research_stream.services.accumulator import TurnAccumulator
from research_stream.services.history import TurnHistoryCache
from research_stream.services.progress import ProgressEstimator
from research_stream.services.reconciler import StreamReconciler
from research_stream.testing.clock import ManualScheduler

# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Manual clock starting at t=0."""
    return ManualScheduler()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def event_log(bus: EventBus) -> EventLog:
    """Records every event published on ``bus``."""
    log = EventLog()
    bus.subscribe_all(log.append)
    return log


@pytest.fixture
def store(bus: EventBus) -> MessageStore:
    return MessageStore(bus)


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def history() -> TurnHistoryCache:
    return TurnHistoryCache()


@pytest.fixture
def estimator(scheduler: ManualScheduler, bus: EventBus) -> ProgressEstimator:
    """Estimator with a seeded jitter generator."""
    return ProgressEstimator(scheduler, rng=np.random.default_rng(0), event_bus=bus)


@pytest.fixture
def accumulator(
    history: TurnHistoryCache, estimator: ProgressEstimator, bus: EventBus,
) -> TurnAccumulator:
    return TurnAccumulator(history, estimator, event_bus=bus)


@pytest.fixture
def reconciler(
    store: MessageStore,
    accumulator: TurnAccumulator,
    history: TurnHistoryCache,
    bus: EventBus,
) -> StreamReconciler:
    """Reconciler attached to ``store`` notifications."""
    return StreamReconciler(store, accumulator, history, bus).attach()


@pytest.fixture
def engine(scheduler: ManualScheduler) -> Iterator[ResearchEngine]:
    """Fully wired engine on a manual clock, no transport bound."""
    eng = build_engine(config=EngineConfig(seed=0), scheduler=scheduler)
    yield eng
    eng.close()

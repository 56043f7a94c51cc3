"""Assembly of a complete research stream engine.

``build_engine()`` wires the event bus, message store, history cache,
progress estimator, accumulator, reconciler and session together::

    engine = build_engine(scheduler=ManualScheduler())
    engine.session.bind_transport(GraphTransport(app, engine.store))
    engine.session.submit("How did AAPL do this quarter?")
    for turn in engine.turns():
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from research_stream.infrastructure.config import EngineConfig
from research_stream.infrastructure.event_bus import EventBus, EventLog
from research_stream.infrastructure.message_store import MessageStore
from research_stream.infrastructure.scheduling import AsyncioScheduler, Scheduler
from research_stream.services.accumulator import TurnAccumulator
from research_stream.services.history import TurnHistoryCache
from research_stream.services.pairing import TurnView
from research_stream.services.progress import ProgressEstimator
from research_stream.services.reconciler import StreamReconciler
from research_stream.services.session import ResearchSession, SendFn

logger = logging.getLogger(__name__)


@dataclass
class ResearchEngine:
    """All components of one conversation, wired and attached."""

    config: EngineConfig
    scheduler: Scheduler
    bus: EventBus
    events: EventLog
    store: MessageStore
    history: TurnHistoryCache
    progress: ProgressEstimator
    accumulator: TurnAccumulator
    reconciler: StreamReconciler
    session: ResearchSession

    def turns(self) -> list[TurnView]:
        return self.reconciler.turns()

    def close(self) -> None:
        """Detach from the store and stop every progress timer."""
        self.reconciler.detach()
        self.progress.reset()
        self.bus.unsubscribe_all(self.events.append)


def build_engine(
    config: EngineConfig | None = None,
    scheduler: Scheduler | None = None,
    send: SendFn | None = None,
    has_credentials: bool = True,
) -> ResearchEngine:
    """Build and attach a :class:`ResearchEngine`.

    Parameters
    ----------
    config:
        Engine configuration.  Defaults to ``EngineConfig.from_env()``.
    scheduler:
        Timer source.  Defaults to an :class:`AsyncioScheduler`, which needs
        a running event loop once a query is submitted.
    send:
        Transport callable for accepted queries; can be bound later with
        ``engine.session.bind_transport``.
    has_credentials:
        Whether queries may be sent right away.
    """
    cfg = config if config is not None else EngineConfig.from_env()
    cfg.validate()
    sched = scheduler if scheduler is not None else AsyncioScheduler()

    bus = EventBus()
    events = EventLog(max_size=cfg.event_log_size)
    bus.subscribe_all(events.append)

    store = MessageStore(bus)
    history = TurnHistoryCache()
    progress = ProgressEstimator(
        sched,
        config=cfg.progress,
        steps=cfg.steps,
        rng=np.random.default_rng(cfg.seed),
        event_bus=bus,
    )
    accumulator = TurnAccumulator(history, progress, event_bus=bus)
    reconciler = StreamReconciler(store, accumulator, history, bus).attach()
    session = ResearchSession(
        store, accumulator, send=send, has_credentials=has_credentials, event_bus=bus,
    )
    logger.debug("Engine built with config %s", cfg.to_dict())
    return ResearchEngine(
        config=cfg,
        scheduler=sched,
        bus=bus,
        events=events,
        store=store,
        history=history,
        progress=progress,
        accumulator=accumulator,
        reconciler=reconciler,
        session=session,
    )

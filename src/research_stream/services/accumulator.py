"""Turn accumulator: owner of the live turn.

The accumulator holds the authoritative facet snapshot of the in-flight
turn, the count of fragments already consumed for that turn's message, and
the progress estimator.  It applies demultiplexer update sets, detects
nothing on its own (the reconciler tells it when a turn begins or ends), and
hands a finished turn's snapshot to the history cache exactly once.

Update policy
-------------
* A sources fragment replaces ``sources``, ``news`` and ``images`` together,
  so the three never reflect different batches.
* Ticker, follow-ups and status each replace only their own facet.
* An empty list is a real value ("no sources"), distinct from ``None``
  ("not received yet").
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from research_stream.domain.events import (
    DomainEvent,
    FacetsUpdated,
    FragmentRejected,
    SourcesCompleted,
    TurnFrozen,
    TurnStarted,
)
from research_stream.domain.exceptions import TurnStateError
from research_stream.domain.values import FacetSnapshot, ProgressView
from research_stream.infrastructure.event_bus import EventBus
from research_stream.services.demux import DemuxResult, demultiplex
from research_stream.services.history import TurnHistoryCache
from research_stream.services.progress import ProgressEstimator

logger = logging.getLogger(__name__)


class TurnAccumulator:
    """Live facet snapshot and progress for the active turn.

    Parameters
    ----------
    history:
        Cache receiving each turn's snapshot when it is frozen.
    progress:
        Estimator driven by this accumulator's turn lifecycle.
    event_bus:
        Optional bus for turn lifecycle events.
    """

    def __init__(
        self,
        history: TurnHistoryCache,
        progress: ProgressEstimator,
        event_bus: EventBus | None = None,
    ) -> None:
        self._history = history
        self._progress = progress
        self._bus = event_bus

        self._turn_index = -1
        self._snapshot = FacetSnapshot()
        self._processed = 0
        self._frozen = False
        self._pending_query: str | None = None

    # -- read side ---------------------------------------------------------

    @property
    def turn_index(self) -> int:
        """Index of the current turn among assistant responses (-1 before any)."""
        return self._turn_index

    @property
    def snapshot(self) -> FacetSnapshot:
        return self._snapshot

    @property
    def processed(self) -> int:
        """Fragments of the current turn's message already consumed."""
        return self._processed

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def has_live_turn(self) -> bool:
        return self._turn_index >= 0 and not self._frozen

    @property
    def progress(self) -> ProgressEstimator:
        return self._progress

    def progress_view(self) -> ProgressView:
        return self._progress.view()

    # -- lifecycle -----------------------------------------------------------

    def expect_turn(self, query: str) -> None:
        """A query was submitted and its response slot has not opened yet.

        The current turn, no longer the most recent, is frozen.  The progress
        estimate starts early; the matching ``begin_turn`` adopts it.
        """
        if self.has_live_turn:
            self.freeze()
        self._pending_query = query
        self._progress.start(query)

    def begin_turn(self, query: str = "") -> int:
        """Start a new turn and return its index.

        A still-live previous turn is frozen first.  The live snapshot and
        the consumed-fragment count are reset, and the progress estimate is
        restarted unless it was already started for this same query by
        :meth:`expect_turn`.
        """
        if self.has_live_turn:
            logger.debug("Turn %d superseded before completion", self._turn_index)
            self.freeze()

        self._turn_index += 1
        self._snapshot = FacetSnapshot()
        self._processed = 0
        self._frozen = False

        if not (self._pending_query == query and self._progress.is_active):
            self._progress.start(query)
        self._pending_query = None

        logger.debug("Turn %d began", self._turn_index)
        self._publish(TurnStarted(
            source_id="accumulator", turn_index=self._turn_index, query=query,
        ))
        return self._turn_index

    def ingest(self, fragments: Sequence[Any]) -> DemuxResult:
        """Demultiplex the unseen tail of *fragments* and apply it."""
        result = demultiplex(fragments, self._processed)
        self.apply_updates(result)
        return result

    def apply_updates(self, result: DemuxResult) -> FacetSnapshot:
        """Merge a demultiplexer update set into the live snapshot.

        Results that do not advance the consumed count are ignored, so
        applying the same batch twice changes nothing.
        """
        if self._turn_index < 0:
            raise TurnStateError("no turn has begun", turn_index=self._turn_index)
        if self._frozen:
            if not result.is_empty:
                logger.debug(
                    "Ignoring %s for frozen turn %d", list(result.kinds), self._turn_index
                )
            return self._snapshot
        if result.processed <= self._processed:
            return self._snapshot

        for rejected in result.rejected:
            self._publish(FragmentRejected(
                source_id="accumulator",
                turn_index=self._turn_index,
                position=rejected.position,
                reason=rejected.reason,
            ))

        snapshot = self._snapshot
        if result.sources is not None:
            snapshot = snapshot.with_sources_group(*result.sources.to_group())
        if result.ticker is not None:
            snapshot = replace(snapshot, ticker=result.ticker.data.symbol)
        if result.follow_up is not None:
            snapshot = replace(snapshot, follow_ups=tuple(result.follow_up.data.questions))
        if result.status is not None:
            snapshot = replace(snapshot, status_text=result.status.data.message)

        newly_complete = result.sources_complete and not snapshot.sources_complete
        if newly_complete:
            snapshot = replace(snapshot, sources_complete=True)

        self._processed = result.processed
        if snapshot != self._snapshot:
            self._snapshot = snapshot
            self._publish(FacetsUpdated(
                source_id="accumulator",
                turn_index=self._turn_index,
                kinds=result.kinds,
                snapshot=snapshot,
            ))
        if newly_complete:
            self._publish(SourcesCompleted(
                source_id="accumulator", turn_index=self._turn_index,
            ))
        return self._snapshot

    def complete(self) -> FacetSnapshot:
        """The response finished: snap progress to done and freeze the turn."""
        self._progress.complete()
        return self.freeze()

    def freeze(self) -> FacetSnapshot:
        """Copy the live snapshot into the history cache, once per turn."""
        if self._turn_index < 0:
            raise TurnStateError("cannot freeze before any turn", turn_index=-1)
        if self._frozen:
            return self._snapshot
        self._history.put(self._turn_index, self._snapshot)
        self._frozen = True
        logger.debug("Turn %d frozen", self._turn_index)
        self._publish(TurnFrozen(
            source_id="accumulator",
            turn_index=self._turn_index,
            snapshot=self._snapshot,
        ))
        return self._snapshot

    def _publish(self, event: DomainEvent) -> None:
        if self._bus is not None:
            self._bus.publish(event)

"""Turn history cache.

Maps the zero-based index of a completed turn (its position among assistant
responses) to the facet snapshot frozen at completion.  Past turns are
re-rendered from here instead of being re-derived from the raw stream.

There is no eviction; a conversation is assumed to stay small.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from research_stream.domain.exceptions import HistoryKeyError
from research_stream.domain.values import FacetSnapshot

logger = logging.getLogger(__name__)


class TurnHistoryCache:
    """Key-value store of frozen facet snapshots.

    ``put`` may be called more than once for an index; the later value wins.
    Snapshots are immutable values, so storing one never shares mutable
    state with the live turn.
    """

    def __init__(self) -> None:
        self._snapshots: dict[int, FacetSnapshot] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _check_index(turn_index: int) -> None:
        if isinstance(turn_index, bool) or not isinstance(turn_index, int) or turn_index < 0:
            raise HistoryKeyError(
                f"turn index must be a non-negative int, got {turn_index!r}",
                turn_index=turn_index,
            )

    def put(self, turn_index: int, snapshot: FacetSnapshot) -> None:
        """Store *snapshot* for *turn_index*, replacing any earlier value."""
        self._check_index(turn_index)
        with self._lock:
            replaced = turn_index in self._snapshots
            self._snapshots[turn_index] = snapshot
        if replaced:
            logger.debug("History for turn %d overwritten", turn_index)

    def get(self, turn_index: int) -> FacetSnapshot | None:
        """Return the snapshot for *turn_index*, or ``None`` if absent."""
        self._check_index(turn_index)
        with self._lock:
            return self._snapshots.get(turn_index)

    def indices(self) -> list[int]:
        with self._lock:
            return sorted(self._snapshots)

    def clear(self) -> None:
        with self._lock:
            self._snapshots.clear()

    def __contains__(self, turn_index: object) -> bool:
        with self._lock:
            return turn_index in self._snapshots

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices())

"""Turn pairing view.

Groups the flat message list into ``(request, response)`` turns and picks,
per turn, where its facets come from: the history cache for every turn but
the last, the live accumulator for the last one.  The live turn never reads
history and history is never patched from live state.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from research_stream.domain.entities import Message
from research_stream.domain.values import FacetSnapshot, ProgressView
from research_stream.services.accumulator import TurnAccumulator
from research_stream.services.history import TurnHistoryCache


@dataclass(frozen=True)
class TurnView:
    """Read-only presentation tuple for one turn.

    ``facets`` is ``None`` when no snapshot exists for a past turn (nothing
    was ever frozen for it).  ``progress`` is only set on the live turn.
    """

    index: int
    request: Message
    response: Message | None
    facets: FacetSnapshot | None
    is_live: bool = False
    progress: ProgressView | None = None

    @property
    def query(self) -> str:
        return self.request.text

    @property
    def answer(self) -> str:
        return self.response.text if self.response is not None else ""

    @property
    def is_awaiting_response(self) -> bool:
        return self.is_live and self.response is None


def pair_turns(
    messages: Sequence[Message],
    accumulator: TurnAccumulator,
    history: TurnHistoryCache,
) -> list[TurnView]:
    """Pair message ``2i`` with ``2i + 1`` and resolve each turn's facets."""
    pair_count = (len(messages) + 1) // 2
    turns: list[TurnView] = []
    for index in range(pair_count):
        request = messages[2 * index]
        response = messages[2 * index + 1] if 2 * index + 1 < len(messages) else None
        if index < pair_count - 1:
            turns.append(TurnView(
                index=index,
                request=request,
                response=response,
                facets=history.get(index),
            ))
        else:
            turns.append(_live_turn(index, request, response, accumulator))
    return turns


def _live_turn(
    index: int,
    request: Message,
    response: Message | None,
    accumulator: TurnAccumulator,
) -> TurnView:
    # Until the accumulator has begun this turn its snapshot belongs to the
    # previous one; show an empty snapshot instead.
    if response is not None and accumulator.turn_index == index:
        facets = accumulator.snapshot
    else:
        facets = FacetSnapshot()
    return TurnView(
        index=index,
        request=request,
        response=response,
        facets=facets,
        is_live=True,
        progress=accumulator.progress_view(),
    )

"""Service layer for the research stream engine.

The services turn the raw inbound stream into per-turn, render-ready state::

    from research_stream.services import (
        StreamReconciler, TurnAccumulator, TurnHistoryCache, ProgressEstimator,
    )
"""

from research_stream.services.accumulator import TurnAccumulator
from research_stream.services.demux import DemuxResult, RejectedFragment, demultiplex
from research_stream.services.history import TurnHistoryCache
from research_stream.services.pairing import TurnView, pair_turns
from research_stream.services.progress import ProgressEstimator, estimate_total_seconds
from research_stream.services.reconciler import StreamReconciler
from research_stream.services.session import ResearchSession

__all__ = [
    # Demultiplexing
    "DemuxResult",
    "RejectedFragment",
    "demultiplex",
    # Turn state
    "TurnAccumulator",
    "TurnHistoryCache",
    "TurnView",
    "pair_turns",
    # Progress
    "ProgressEstimator",
    "estimate_total_seconds",
    # Wiring
    "ResearchSession",
    "StreamReconciler",
]

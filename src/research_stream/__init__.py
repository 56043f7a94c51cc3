"""Research Stream.

Client-side reconciliation engine for streamed research answers: splits an
assistant message's fragment stream into per-turn facets (sources, ticker,
follow-ups, status), freezes finished turns into a history cache, and keeps
a heuristic progress estimate for the turn in flight.
"""

__version__ = "0.1.0"

from research_stream.engine import ResearchEngine, build_engine

__all__ = [
    "ResearchEngine",
    "build_engine",
]

"""Domain events for the research stream engine.

Every event is a frozen dataclass inheriting from ``DomainEvent``.  Events are
the push contract between components: the message store announces changes,
the accumulator and estimator announce turn and progress transitions, and
listeners (reconciler, presentation, tests) react.

All events carry a ``timestamp`` and a ``source_id`` identifying the
originating component.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from .enums import ChatStatus, FragmentKind
from .values import FacetSnapshot, ProgressState

# ---------------------------------------------------------------------------
# Base event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    timestamp: float = field(default_factory=time.time)
    source_id: str = ""


# ---------------------------------------------------------------------------
# Transport events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MessagesChanged(DomainEvent):
    """The message list or a fragment list grew, or the status changed."""

    message_count: int = 0
    status: ChatStatus = ChatStatus.READY


@dataclass(frozen=True)
class QuerySubmitted(DomainEvent):
    query: str = ""


@dataclass(frozen=True)
class QueryDeferred(DomainEvent):
    """A query was held back because no credentials are present."""

    query: str = ""


# ---------------------------------------------------------------------------
# Turn lifecycle events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TurnStarted(DomainEvent):
    turn_index: int = -1
    query: str = ""


@dataclass(frozen=True)
class FacetsUpdated(DomainEvent):
    """An update set was merged into the live snapshot."""

    turn_index: int = -1
    kinds: tuple[FragmentKind, ...] = ()
    snapshot: FacetSnapshot = field(default_factory=FacetSnapshot)


@dataclass(frozen=True)
class SourcesCompleted(DomainEvent):
    """A status fragment reported the sources phase complete."""

    turn_index: int = -1


@dataclass(frozen=True)
class FragmentRejected(DomainEvent):
    """A malformed fragment was skipped."""

    turn_index: int = -1
    position: int | None = None
    reason: str = ""


@dataclass(frozen=True)
class TurnFrozen(DomainEvent):
    """A turn's snapshot was copied into the history cache."""

    turn_index: int = -1
    snapshot: FacetSnapshot = field(default_factory=FacetSnapshot)


# ---------------------------------------------------------------------------
# Progress events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProgressStarted(DomainEvent):
    generation: int = 0
    estimated_total_seconds: int = 0


@dataclass(frozen=True)
class ProgressTicked(DomainEvent):
    generation: int = 0
    state: ProgressState = field(default_factory=ProgressState)


@dataclass(frozen=True)
class ProgressCompleted(DomainEvent):
    generation: int = 0

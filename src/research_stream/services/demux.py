"""Fragment demultiplexer.

Given the full fragment list of the most recent message and how many of
those fragments were already consumed, :func:`demultiplex` produces the
"latest value" per facet kind among the unseen fragments.  It is a pure
function: the caller owns the consumed count and passes it by value, so
re-running it with the same count is harmless.

Within one batch the last fragment of each kind wins; earlier fragments of
the same kind are discarded, never merged.  Malformed fragments are logged
and skipped and never raise past this boundary.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from research_stream.domain.enums import FragmentKind
from research_stream.domain.exceptions import MalformedFragmentError
from research_stream.domain.fragments import (
    FollowUpFragment,
    Fragment,
    SourcesFragment,
    StatusFragment,
    TextFragment,
    TickerFragment,
    parse_fragment,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RejectedFragment:
    """A fragment the demultiplexer could not classify."""

    position: int
    reason: str


@dataclass(frozen=True)
class DemuxResult:
    """Update set for one batch of newly-seen fragments.

    Attributes
    ----------
    updates:
        At most one fragment per facet kind -- the last of that kind in the
        batch.  Text fragments are not facets and never appear here.
    processed:
        The consumed count to pass to the next call.
    sources_complete:
        True if any status fragment in the batch reported completion.
    rejected:
        Malformed fragments skipped in this batch.
    """

    updates: Mapping[FragmentKind, Fragment] = field(default_factory=dict)
    processed: int = 0
    sources_complete: bool = False
    rejected: tuple[RejectedFragment, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.updates and not self.sources_complete

    @property
    def kinds(self) -> tuple[FragmentKind, ...]:
        return tuple(self.updates)

    @property
    def sources(self) -> SourcesFragment | None:
        return self.updates.get(FragmentKind.SOURCES)  # type: ignore[return-value]

    @property
    def ticker(self) -> TickerFragment | None:
        return self.updates.get(FragmentKind.TICKER)  # type: ignore[return-value]

    @property
    def follow_up(self) -> FollowUpFragment | None:
        return self.updates.get(FragmentKind.FOLLOWUP)  # type: ignore[return-value]

    @property
    def status(self) -> StatusFragment | None:
        return self.updates.get(FragmentKind.STATUS)  # type: ignore[return-value]


def demultiplex(fragments: Sequence[Any], processed: int) -> DemuxResult:
    """Classify ``fragments[processed:]`` into a per-kind update set.

    Parameters
    ----------
    fragments:
        The complete, append-only fragment list of the most recent message.
    processed:
        How many leading fragments were already consumed for this message.

    Returns
    -------
    DemuxResult
        Empty (with ``processed`` unchanged) when nothing new arrived.
    """
    total = len(fragments)
    if processed < 0:
        raise ValueError(f"processed must be >= 0, got {processed}")
    if processed >= total:
        if processed > total:
            logger.warning(
                "Fragment list shrank from %d to %d; ignoring", processed, total
            )
        return DemuxResult(processed=processed)

    latest: dict[FragmentKind, Fragment] = {}
    rejected: list[RejectedFragment] = []
    sources_complete = False

    for position in range(processed, total):
        try:
            fragment = parse_fragment(fragments[position], position=position)
        except MalformedFragmentError as exc:
            logger.warning("Skipping malformed fragment #%d: %s", position, exc)
            rejected.append(RejectedFragment(position=position, reason=str(exc)))
            continue

        if isinstance(fragment, TextFragment):
            continue
        if isinstance(fragment, StatusFragment) and fragment.data.is_complete:
            sources_complete = True
        # dict keeps first-insertion order; re-insert so order follows arrival.
        latest.pop(fragment.kind, None)
        latest[fragment.kind] = fragment

    if rejected:
        logger.debug("Batch %d..%d had %d rejected fragment(s)", processed, total, len(rejected))

    return DemuxResult(
        updates=latest,
        processed=total,
        sources_complete=sources_complete,
        rejected=tuple(rejected),
    )

"""Value objects for the research stream engine.

All types here are frozen dataclasses -- immutable, compared by value.
Facet snapshots hold tuples rather than lists so that a snapshot handed to
the history cache can never be mutated through a shared reference.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from urllib.parse import urlparse

# ---------------------------------------------------------------------------
# Facet items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Source:
    """A web source retrieved for a turn.

    ``url`` is the identity key within a turn's source list.
    ``character_count`` only drives a cosmetic counter.
    """

    url: str
    title: str = ""
    site_name: str | None = None
    favicon_url: str | None = None
    image_url: str | None = None
    character_count: int | None = None

    @property
    def display_site(self) -> str:
        """Site name, falling back to the url hostname without ``www.``."""
        if self.site_name:
            return self.site_name
        host = urlparse(self.url).hostname or ""
        return host.removeprefix("www.")

    @property
    def display_title(self) -> str:
        return self.title or self.url


@dataclass(frozen=True)
class NewsItem:
    """A news result attached to a turn."""

    url: str
    title: str = ""
    source: str | None = None
    date: str | None = None
    snippet: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class ImageItem:
    """An image result attached to a turn."""

    url: str
    title: str = ""
    thumbnail_url: str | None = None
    source_url: str | None = None
    width: int | None = None
    height: int | None = None


# ---------------------------------------------------------------------------
# FacetSnapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FacetSnapshot:
    """All structured facets of one turn at one point in time.

    ``None`` on ``sources``/``news``/``images``/``follow_ups`` means the facet
    has not been received in this turn; an empty tuple means the backend
    explicitly sent "nothing".  ``sources``, ``news`` and ``images`` are
    always replaced together.
    """

    sources: tuple[Source, ...] | None = None
    news: tuple[NewsItem, ...] | None = None
    images: tuple[ImageItem, ...] | None = None
    ticker: str | None = None
    follow_ups: tuple[str, ...] | None = None
    status_text: str = ""
    sources_complete: bool = False

    @property
    def has_sources(self) -> bool:
        """True once a sources fragment has been applied (even if empty)."""
        return self.sources is not None

    @property
    def is_empty(self) -> bool:
        return self == FacetSnapshot()

    def with_sources_group(
        self,
        sources: tuple[Source, ...],
        news: tuple[NewsItem, ...],
        images: tuple[ImageItem, ...],
    ) -> FacetSnapshot:
        """Return a copy with the sources/news/images group replaced at once."""
        return replace(self, sources=sources, news=news, images=images)

    def top_sources(self, limit: int = 5) -> tuple[tuple[Source, ...], int]:
        """Return the first *limit* sources and the count of the rest."""
        sources = self.sources or ()
        return sources[:limit], max(0, len(sources) - limit)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProgressState:
    """Heuristic progress of the active turn.

    ``progress_fraction`` stays within ``[0, max_active_fraction]`` while
    ``active`` and snaps to 1.0 on completion.
    """

    started_at: float | None = None
    estimated_total_seconds: int = 0
    elapsed_seconds: int = 0
    remaining_seconds: int = 0
    progress_fraction: float = 0.0
    active_step_index: int = 0
    active: bool = False
    completed: bool = False

    @property
    def bar_percent(self) -> int:
        """Width of the progress bar in percent, never below 5 while active."""
        if self.completed:
            return 100
        return max(5, math.floor(self.progress_fraction * 100))


@dataclass(frozen=True)
class ProgressView:
    """The displayable ``(fraction, remaining, label)`` triple."""

    progress_fraction: float
    remaining_seconds: int
    active_step_label: str
    bar_percent: int = 0
    active: bool = False

"""Builders for wire-format fragments.

Handy in tests, examples and hand-written replay recordings::

    store.append_fragment(sources_fragment("https://a.example", "https://b.example"))
    store.append_fragment(status_fragment("Read 2 sources", complete=True))
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def source_record(url: str, title: str = "", **extra: Any) -> dict[str, Any]:
    record: dict[str, Any] = {"url": url}
    if title:
        record["title"] = title
    record.update(extra)
    return record


def sources_fragment(
    *sources: str | Mapping[str, Any],
    news: Iterable[Mapping[str, Any]] | None = None,
    images: Iterable[Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """A ``data-sources`` fragment; plain strings become ``{"url": s}``."""
    data: dict[str, Any] = {
        "sources": [
            source_record(s) if isinstance(s, str) else dict(s) for s in sources
        ],
    }
    if news is not None:
        data["newsResults"] = [dict(n) for n in news]
    if images is not None:
        data["imageResults"] = [dict(i) for i in images]
    return {"type": "data-sources", "data": data}


def numbered_sources_fragment(count: int, prefix: str = "https://example.com/s") -> dict[str, Any]:
    """A sources fragment with *count* distinct urls ``{prefix}1 .. {prefix}N``."""
    return sources_fragment(*(f"{prefix}{i}" for i in range(1, count + 1)))


def ticker_fragment(symbol: str | None) -> dict[str, Any]:
    return {"type": "data-ticker", "data": {"symbol": symbol}}


def followup_fragment(*questions: str) -> dict[str, Any]:
    return {"type": "data-followup", "data": {"questions": list(questions)}}


def status_fragment(message: str, complete: bool = False) -> dict[str, Any]:
    return {"type": "data-status", "data": {"message": message, "isComplete": complete}}


def text_fragment(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}

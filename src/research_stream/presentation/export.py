"""Export utilities for research turns.

Turns become a Markdown research document, a JSON list of
``{query, answer, sources}`` objects, or a plain-text citation list.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from research_stream.domain.values import Source
from research_stream.services.pairing import TurnView


def _turn_sources(turn: TurnView) -> tuple[Source, ...]:
    if turn.facets is None or turn.facets.sources is None:
        return ()
    return turn.facets.sources


def format_source_line(index: int, source: Source) -> str:
    """``{n}. [{title or url}]({url}) — {site}``"""
    return f"{index}. [{source.display_title}]({source.url}) — {source.display_site}"


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

def to_markdown(turn: TurnView) -> str:
    """Render one turn as a Markdown research document.

    The document is the query as a heading, the answer, and a numbered
    ``Sources`` section when the turn has any.
    """
    lines = [f"# {turn.query}", "", turn.answer.strip()]
    sources = _turn_sources(turn)
    if sources:
        lines += ["", "## Sources", ""]
        lines += [format_source_line(i, s) for i, s in enumerate(sources, start=1)]
    return "\n".join(lines).rstrip() + "\n"


def conversation_to_markdown(turns: Sequence[TurnView]) -> str:
    """Concatenate the Markdown of every turn, separated by rules."""
    return "\n---\n\n".join(to_markdown(turn) for turn in turns)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def source_to_dict(source: Source) -> dict[str, Any]:
    return {
        "url": source.url,
        "title": source.title,
        "site": source.display_site,
    }


def to_json_dict(turn: TurnView) -> dict[str, Any]:
    """Return ``{"query", "answer", "sources"}`` for *turn*."""
    return {
        "query": turn.query,
        "answer": turn.answer,
        "sources": [source_to_dict(s) for s in _turn_sources(turn)],
    }


# ---------------------------------------------------------------------------
# Citations
# ---------------------------------------------------------------------------

def format_citations(sources: Sequence[Source]) -> str:
    """Plain-text citation list: ``{n}. {title} — {site}`` then the url.

    Blocks are separated by a blank line.
    """
    blocks = [
        f"{i}. {source.display_title} — {source.display_site}\n{source.url}"
        for i, source in enumerate(sources, start=1)
    ]
    return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def export_markdown(turns: Sequence[TurnView], path: str | Path) -> Path:
    """Write the conversation as Markdown to *path*.

    Parameters
    ----------
    turns:
        Turns to export, typically from ``StreamReconciler.turns()``.
    path:
        File path for the Markdown output.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(conversation_to_markdown(turns), encoding="utf-8")
    return out


def export_json(turns: Sequence[TurnView], path: str | Path) -> Path:
    """Write the conversation as a JSON list of turn objects to *path*."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as fh:
        json.dump([to_json_dict(turn) for turn in turns], fh, indent=2, ensure_ascii=False)
    return out

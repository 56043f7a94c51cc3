"""Rich-based console rendering of research turns, with a plain-text mode.

:class:`TurnConsole` prints each paired turn: the query, status line,
ticker, the top sources (with an overflow count), the answer, follow-up
questions and, for the live turn, the heuristic progress bar with its
estimated time remaining and the current stage label.

Plain mode writes the same content with ``print()``; it is what the CLI
uses when ``--plain`` is given and what tests assert against.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Any

from rich.console import Console as RichConsole
from rich.console import Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table as RichTable
from rich.text import Text as RichText

from research_stream.domain.values import FacetSnapshot, ProgressView
from research_stream.services.pairing import TurnView

TOP_SOURCES = 5
BAR_WIDTH = 30


def format_remaining(seconds: int) -> str:
    """``~12s left`` below a minute, ``~1m 05s left`` above."""
    if seconds >= 60:
        return f"~{seconds // 60}m {seconds % 60:02d}s left"
    return f"~{seconds}s left"


def text_bar(percent: int, width: int = BAR_WIDTH) -> str:
    filled = round(width * max(0, min(100, percent)) / 100)
    return "#" * filled + "." * (width - filled)


class TurnConsole:
    """Console presentation of a conversation's turns.

    Parameters
    ----------
    use_rich:
        Render with rich panels and tables (``True``, default) or plain
        text (``False``).
    file:
        Output stream.  Defaults to ``sys.stdout``.
    width:
        Console width for rich output.
    """

    def __init__(
        self,
        use_rich: bool = True,
        file: Any = None,
        width: int | None = None,
    ) -> None:
        self._file = file or sys.stdout
        self._use_rich = use_rich
        self._console = RichConsole(file=self._file, width=width) if use_rich else None

    # -- helpers -----------------------------------------------------------

    def _plain_print(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("file", self._file)
        print(*args, **kwargs)

    # -- public API --------------------------------------------------------

    def print_turns(self, turns: Sequence[TurnView]) -> None:
        if not turns:
            self._plain_print("[no turns]")
            return
        for turn in turns:
            self.print_turn(turn)

    def print_turn(self, turn: TurnView) -> None:
        if self._use_rich and self._console is not None:
            self._print_turn_rich(turn)
        else:
            self._print_turn_plain(turn)

    def print_info(self, rows: Sequence[tuple[str, str]], title: str = "research-stream") -> None:
        """Print key/value rows (used by ``research-stream info``)."""
        if self._use_rich and self._console is not None:
            table = RichTable(title=title, show_header=False)
            table.add_column("Key", style="bold")
            table.add_column("Value")
            for key, value in rows:
                table.add_row(key, value)
            self._console.print(table)
        else:
            self._plain_print(f"=== {title} ===")
            for key, value in rows:
                self._plain_print(f"{key}: {value}")

    # ======================================================================
    # Plain-text implementation
    # ======================================================================

    def _print_turn_plain(self, turn: TurnView) -> None:
        self._plain_print(f"[{turn.index + 1}] Q: {turn.query}")
        facets = turn.facets
        if facets is None:
            self._plain_print("    (no facets recorded)")
        else:
            for line in _facet_lines(facets):
                self._plain_print(f"    {line}")
        if turn.answer:
            self._plain_print(f"    A: {turn.answer}")
        if facets is not None and facets.follow_ups:
            self._plain_print("    follow-ups:")
            for i, question in enumerate(facets.follow_ups):
                self._plain_print(f"      ({i}) {question}")
        if turn.is_live and turn.progress is not None:
            self._plain_print(f"    {_progress_line(turn.progress)}")
        self._plain_print()

    # ======================================================================
    # Rich implementation
    # ======================================================================

    def _print_turn_rich(self, turn: TurnView) -> None:
        assert self._console is not None
        parts: list[Any] = []
        facets = turn.facets
        if facets is None:
            parts.append(RichText("no facets recorded", style="dim"))
        else:
            if facets.status_text:
                parts.append(RichText(facets.status_text, style="italic"))
            if facets.ticker:
                parts.append(RichText(f"${facets.ticker}", style="bold magenta"))
            sources_table = _sources_table(facets)
            if sources_table is not None:
                parts.append(sources_table)
            elif facets.sources is not None:
                parts.append(RichText("no sources", style="dim"))
        if turn.answer:
            parts.append(RichText(turn.answer))
        if facets is not None and facets.follow_ups:
            follow = RichText("Follow-ups:\n", style="bold")
            for i, question in enumerate(facets.follow_ups):
                follow.append(f"  ({i}) {question}\n", style="cyan")
            parts.append(follow)
        if turn.is_live and turn.progress is not None and turn.progress.active:
            view = turn.progress
            parts.append(ProgressBar(total=100, completed=view.bar_percent, width=BAR_WIDTH))
            parts.append(RichText(
                f"{view.active_step_label}  {format_remaining(view.remaining_seconds)}",
                style="dim",
            ))

        border = "green" if turn.is_live else "blue"
        self._console.print(Panel(
            Group(*parts) if parts else RichText(""),
            title=f"[bold]{turn.index + 1}. {turn.query}[/bold]",
            border_style=border,
        ))


def _facet_lines(facets: FacetSnapshot) -> list[str]:
    lines: list[str] = []
    if facets.status_text:
        lines.append(f"status: {facets.status_text}")
    if facets.ticker:
        lines.append(f"ticker: {facets.ticker}")
    if facets.sources is not None:
        top, overflow = facets.top_sources(TOP_SOURCES)
        lines.append(f"sources ({len(facets.sources)}):")
        for i, source in enumerate(top, start=1):
            lines.append(f"  {i}. {source.display_title} — {source.display_site}")
        if overflow:
            lines.append(f"  +{overflow} more")
    if facets.news:
        lines.append(f"news: {len(facets.news)}")
    if facets.images:
        lines.append(f"images: {len(facets.images)}")
    return lines


def _sources_table(facets: FacetSnapshot) -> RichTable | None:
    if not facets.sources:
        return None
    top, overflow = facets.top_sources(TOP_SOURCES)
    table = RichTable(show_header=True, header_style="bold cyan", box=None)
    table.add_column("#", justify="right")
    table.add_column("Source")
    table.add_column("Site", style="dim")
    for i, source in enumerate(top, start=1):
        table.add_row(str(i), source.display_title, source.display_site)
    if overflow:
        table.add_row("", f"+{overflow} more", "")
    return table


def _progress_line(view: ProgressView) -> str:
    if not view.active:
        return f"[{text_bar(view.bar_percent)}] {view.bar_percent}% done"
    return (
        f"[{text_bar(view.bar_percent)}] {view.bar_percent}%  "
        f"{format_remaining(view.remaining_seconds)}  {view.active_step_label}"
    )

#!/usr/bin/env python3
"""Example 01: Reconciling a hand-driven stream.

Demonstrates:
- Building an engine on a manual clock
- Pushing user/assistant messages and fragments through the store
- Watching progress advance while the response streams
- Inspecting frozen history and the domain event log

Run:
    PYTHONPATH=src python examples/01_replay_stream.py
"""

from __future__ import annotations

from research_stream import build_engine
from research_stream.domain.events import FragmentRejected, SourcesCompleted, TurnFrozen
from research_stream.infrastructure.config import EngineConfig
from research_stream.presentation.console import TurnConsole, format_remaining
from research_stream.testing import (
    ManualScheduler,
    followup_fragment,
    numbered_sources_fragment,
    status_fragment,
    text_fragment,
    ticker_fragment,
)


def main() -> None:
    scheduler = ManualScheduler()
    engine = build_engine(config=EngineConfig(seed=7), scheduler=scheduler)
    store = engine.store
    console = TurnConsole()

    # -- Turn 1 ---------------------------------------------------------------
    store.append_user("AAPL stock price")
    print(f"ETA: {engine.progress.state.estimated_total_seconds}s")

    store.open_assistant()
    store.append_fragment(status_fragment("Searching the web"))
    for _ in range(3):
        scheduler.advance(1.0)
        view = engine.accumulator.progress_view()
        print(f"  {view.bar_percent:3d}%  {format_remaining(view.remaining_seconds)}  "
              f"{view.active_step_label}")

    store.append_fragment(numbered_sources_fragment(7, prefix="https://markets.example/aapl"))
    store.append_fragment(ticker_fragment("AAPL"))
    store.append_fragment(status_fragment("Read 7 sources", complete=True))
    store.append_fragment({"type": "data-sources", "data": "not an object"})
    store.append_fragment(text_fragment("Apple closed higher on strong services revenue."))
    store.append_fragment(followup_fragment(
        "How did services revenue grow?",
        "What do analysts expect next quarter?",
    ))
    store.finish()

    # -- Turn 2 ---------------------------------------------------------------
    engine.session.follow_up(0)
    store.open_assistant()
    store.append_fragment(numbered_sources_fragment(3, prefix="https://markets.example/services"))
    scheduler.advance(2.0)

    console.print_turns(engine.turns())

    # -- History and events ---------------------------------------------------
    frozen = engine.history.get(0)
    print(f"Turn 1 frozen with {len(frozen.sources)} sources, ticker {frozen.ticker}")
    print(f"Frozen turns:       {len(engine.events.of_type(TurnFrozen))}")
    print(f"Sources completed:  {len(engine.events.of_type(SourcesCompleted))}")
    print(f"Rejected fragments: {len(engine.events.of_type(FragmentRejected))}")

    store.finish()
    engine.close()


if __name__ == "__main__":
    main()

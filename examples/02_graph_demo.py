#!/usr/bin/env python3
"""Example 02: Streaming the scripted LangGraph pipeline into the engine.

Demonstrates:
- Building the scripted research graph with a canned chat model
- Bridging graph updates to wire fragments with GraphTransport
- Submitting a query and a follow-up through ResearchSession
- Exporting the conversation as Markdown and citations

Run:
    PYTHONPATH=src python examples/02_graph_demo.py
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from research_stream import build_engine
from research_stream.graph import GraphTransport, build_research_graph
from research_stream.infrastructure.config import EngineConfig
from research_stream.presentation import TurnConsole, export_markdown, format_citations
from research_stream.testing import ManualScheduler, ScriptedChatModel


def main() -> None:
    scheduler = ManualScheduler()
    engine = build_engine(config=EngineConfig(seed=11), scheduler=scheduler)

    model = ScriptedChatModel(replies=[
        "NVDA rallied after data-center revenue beat expectations.",
        "Most analysts raised their targets after the report.",
    ])
    app = build_research_graph(model=model, seed=11, max_sources=8)
    engine.session.bind_transport(
        GraphTransport(app, engine.store, pace=lambda: scheduler.advance(0.5))
    )

    engine.session.submit("Why did NVDA move today?")
    engine.session.follow_up(len(engine.accumulator.snapshot.follow_ups) - 1)

    turns = engine.turns()
    TurnConsole().print_turns(turns)

    first = engine.history.get(0)
    print("Citations for turn 1:\n")
    print(format_citations(first.sources or ()))

    out = Path(tempfile.gettempdir()) / "research_stream_demo.md"
    print(f"\nMarkdown written to {export_markdown(turns, out)}")
    engine.close()


if __name__ == "__main__":
    main()

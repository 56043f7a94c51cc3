"""Tests for the LangGraph bridge: formatters, transport and scripted graph."""

from __future__ import annotations

import numpy as np
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from research_stream.domain.enums import ChatStatus, Role
from research_stream.domain.entities import Message
from research_stream.engine import ResearchEngine
from research_stream.graph.messages import (
    from_langchain_messages,
    message_content_text,
    to_langchain_messages,
)
from research_stream.graph.scripted import build_research_graph, detect_ticker, make_sources
from research_stream.graph.streaming import (
    GraphTransport,
    collect_stream_fragments,
    format_stream_fragments,
    update_to_fragments,
)
from research_stream.testing.mock_llm import ScriptedChatModel


class TestUpdateToFragments:

    def test_sources_group_in_one_fragment(self) -> None:
        frags = update_to_fragments({
            "sources": [{"url": "https://a.example"}],
            "news": [],
        })
        assert frags == [{
            "type": "data-sources",
            "data": {"sources": [{"url": "https://a.example"}], "newsResults": []},
        }]

    def test_ticker_followups_status_and_answer(self) -> None:
        frags = update_to_fragments({
            "ticker": "AAPL",
            "follow_ups": ["Why?"],
            "status": {"message": "Done", "is_complete": True},
            "answer": "Apple rose.",
        })
        assert [f["type"] for f in frags] == [
            "data-ticker", "data-followup", "data-status", "text",
        ]
        assert frags[2]["data"] == {"message": "Done", "isComplete": True}
        assert frags[3]["text"] == "Apple rose."

    def test_internal_keys_ignored(self) -> None:
        assert update_to_fragments({"query": "q", "history": []}) == []

    def test_null_ticker_kept(self) -> None:
        assert update_to_fragments({"ticker": None}) == [
            {"type": "data-ticker", "data": {"symbol": None}},
        ]


class TestFormatStreamFragments:

    def test_flattens_chunks_in_order(self) -> None:
        stream = iter([
            {"a": {"status": {"message": "one"}}},
            {"b": None},
            {"c": {"answer": "text"}},
        ])
        frags = list(format_stream_fragments(stream))
        assert [f["type"] for f in frags] == ["data-status", "text"]

    def test_collect(self) -> None:
        assert collect_stream_fragments(iter([])) == []


class TestScriptedGraph:

    def test_detect_ticker(self) -> None:
        assert detect_ticker("AAPL stock price") == "AAPL"
        assert detect_ticker("how is $msft doing") == "MSFT"
        assert detect_ticker("what is the weather") is None

    def test_make_sources_distinct_urls(self) -> None:
        sources = make_sources("rust vs go", 6, np.random.default_rng(0))
        assert len({s["url"] for s in sources}) == 6
        assert all(s["url"].startswith("https://") for s in sources)

    def test_invalid_max_sources(self) -> None:
        with pytest.raises(ValueError):
            build_research_graph(max_sources=2)

    def test_stream_produces_every_facet(self) -> None:
        app = build_research_graph(
            model=ScriptedChatModel(replies=["Apple closed higher."]), seed=1,
        )
        frags = collect_stream_fragments(app.stream(
            {"query": "AAPL stock price", "history": [HumanMessage(content="AAPL stock price")]},
            stream_mode="updates",
        ))
        types = [f["type"] for f in frags]
        assert types[0] == "data-status"
        assert "data-sources" in types
        assert "data-ticker" in types
        assert "data-followup" in types
        assert types.count("text") == 1
        completes = [f for f in frags if f["type"] == "data-status" and f["data"]["isComplete"]]
        assert len(completes) == 1

    def test_seeded_graph_is_reproducible(self) -> None:
        def run() -> list[dict]:
            app = build_research_graph(seed=42)
            return collect_stream_fragments(
                app.stream({"query": "solar power"}, stream_mode="updates")
            )

        assert run() == run()


class TestGraphTransport:

    def test_streams_into_engine(self, engine: ResearchEngine) -> None:
        app = build_research_graph(model=ScriptedChatModel(replies=["An answer."]), seed=3)
        engine.session.bind_transport(GraphTransport(app, engine.store))
        assert engine.session.submit("AAPL stock price")

        assert engine.store.status is ChatStatus.READY
        frozen = engine.history.get(0)
        assert frozen is not None
        assert frozen.ticker == "AAPL"
        assert 3 <= len(frozen.sources) <= 10
        assert frozen.sources_complete
        assert frozen.follow_ups
        turns = engine.turns()
        assert turns[0].answer == "An answer."
        assert engine.progress.state.completed

    def test_history_reaches_model(self, engine: ResearchEngine) -> None:
        model = ScriptedChatModel()
        app = build_research_graph(model=model, seed=0)
        engine.session.bind_transport(GraphTransport(app, engine.store))
        engine.session.submit("first question")
        engine.session.submit("second question")
        assert model.call_count == 2
        assert engine.turns()[1].answer.endswith("second question")

    def test_pace_called_per_fragment(self, engine: ResearchEngine) -> None:
        calls: list[int] = []
        app = build_research_graph(seed=0)
        transport = GraphTransport(app, engine.store, pace=lambda: calls.append(1))
        engine.session.bind_transport(transport)
        engine.session.submit("q")
        assert len(calls) == len(engine.store.messages[1].fragments)

    def test_graph_failure_ends_with_error(self, engine: ResearchEngine) -> None:
        class Broken:
            def stream(self, *args, **kwargs):
                yield {"acknowledge": {"status": {"message": "Searching"}}}
                raise RuntimeError("backend down")

        engine.session.bind_transport(GraphTransport(Broken(), engine.store))
        engine.session.submit("q")
        assert engine.store.status is ChatStatus.ERROR
        assert engine.history.get(0).status_text == "Searching"
        assert not engine.progress.is_active


class TestMessageConversion:

    def test_to_langchain_skips_empty_assistant(self) -> None:
        user = Message.user("hello")
        converted = to_langchain_messages([user, Message.assistant()])
        assert len(converted) == 1
        assert isinstance(converted[0], HumanMessage)
        assert converted[0].content == "hello"

    def test_round_trip_roles_and_text(self) -> None:
        lc = [
            SystemMessage(content="be brief"),
            HumanMessage(content="q"),
            AIMessage(content=[{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]),
        ]
        messages = from_langchain_messages(lc)
        assert [m.role for m in messages] == [Role.USER, Role.ASSISTANT]
        assert messages[1].text == "ab"

    def test_content_text(self) -> None:
        assert message_content_text(AIMessage(content="plain")) == "plain"

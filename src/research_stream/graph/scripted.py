"""Scripted research pipeline as a LangGraph ``StateGraph``.

``build_research_graph()`` wires five nodes into a linear graph that behaves
like a research backend from the engine's point of view::

    acknowledge -> search -> sources_done -> compose -> suggest

Sources, news and images are synthesised from the query with a seeded
``numpy`` generator so runs are reproducible; the answer comes from any
LangChain chat model (a :class:`ScriptedChatModel` by default).  Streamed
with ``stream_mode="updates"``, every node update maps onto the wire
fragments consumed by the engine.
"""

import logging
import re
from typing import Any

import numpy as np
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage
from langgraph.graph import END, START, StateGraph

from research_stream.graph.messages import message_content_text
from research_stream.graph.state import ResearchState
from research_stream.testing.mock_llm import ScriptedChatModel

logger = logging.getLogger(__name__)

SITES: tuple[str, ...] = (
    "www.reuters.com",
    "en.wikipedia.org",
    "www.bloomberg.com",
    "arstechnica.com",
    "www.nature.com",
    "apnews.com",
    "www.ft.com",
)

_TICKER_PATTERN = re.compile(r"\$([A-Za-z]{1,5})\b|\b([A-Z]{3,5})\b")
_WORD_PATTERN = re.compile(r"[A-Za-z0-9]+")


def detect_ticker(query: str) -> str | None:
    """Return a stock symbol mentioned in *query* (``$aapl`` or ``AAPL``)."""
    match = _TICKER_PATTERN.search(query)
    if match is None:
        return None
    return (match.group(1) or match.group(2)).upper()


def _slug(query: str) -> str:
    words = _WORD_PATTERN.findall(query.lower())
    return "-".join(words[:6]) or "query"


def make_sources(query: str, count: int, rng: np.random.Generator) -> list[dict[str, Any]]:
    """Synthesise *count* wire-format source records for *query*."""
    slug = _slug(query)
    sources: list[dict[str, Any]] = []
    for i in range(count):
        site = SITES[int(rng.integers(0, len(SITES)))]
        sources.append({
            "url": f"https://{site}/{slug}-{i + 1}",
            "title": f"{query.strip().rstrip('?')} ({i + 1})",
            "siteName": site.removeprefix("www."),
            "favicon": f"https://{site}/favicon.ico",
            "charCount": int(rng.integers(800, 12_000)),
        })
    return sources


def make_news(query: str, count: int, rng: np.random.Generator) -> list[dict[str, Any]]:
    slug = _slug(query)
    news: list[dict[str, Any]] = []
    for i in range(count):
        site = SITES[int(rng.integers(0, len(SITES)))]
        news.append({
            "url": f"https://{site}/news/{slug}-{i + 1}",
            "title": f"Latest on {query.strip().rstrip('?')}",
            "source": site.removeprefix("www."),
            "date": f"2026-10-{int(rng.integers(1, 18)):02d}",
        })
    return news


def make_images(query: str, count: int) -> list[dict[str, Any]]:
    slug = _slug(query)
    return [
        {
            "url": f"https://images.example.org/{slug}/{i + 1}.jpg",
            "title": query.strip(),
            "thumbnail": f"https://images.example.org/{slug}/{i + 1}-thumb.jpg",
            "width": 640,
            "height": 480,
        }
        for i in range(count)
    ]


def _follow_ups(query: str, ticker: str | None) -> list[str]:
    topic = query.strip().rstrip("?")
    questions = [
        f"What are the main criticisms of {topic}?",
        f"How has {topic} changed over the last year?",
    ]
    if ticker:
        questions.append(f"What do analysts expect from {ticker} next quarter?")
    return questions


# ===================================================================== #
#  Node factories                                                         #
# ===================================================================== #


def acknowledge_node(state: ResearchState) -> dict[str, Any]:
    return {"status": {"message": "Searching the web", "is_complete": False}}


def make_search_node(rng: np.random.Generator, max_sources: int = 10) -> Any:
    """Create the search node, drawing result counts from *rng*."""

    def search_node(state: ResearchState) -> dict[str, Any]:
        query = state.get("query", "")
        count = int(rng.integers(3, max_sources + 1))
        logger.debug("search_node: %d sources for %r", count, query)
        return {
            "sources": make_sources(query, count, rng),
            "news": make_news(query, int(rng.integers(0, 4)), rng),
            "images": make_images(query, int(rng.integers(0, 3))),
            "ticker": detect_ticker(query),
        }

    return search_node


def sources_done_node(state: ResearchState) -> dict[str, Any]:
    count = len(state.get("sources", []))
    return {"status": {"message": f"Read {count} sources", "is_complete": True}}


def make_compose_node(model: BaseChatModel) -> Any:
    """Create the compose node backed by a LangChain chat *model*."""

    def compose_node(state: ResearchState) -> dict[str, Any]:
        history = list(state.get("history", []))
        if not history:
            history = [HumanMessage(content=state.get("query", ""))]
        reply = model.invoke(history)
        answer = message_content_text(reply)
        return {"answer": answer, "history": [AIMessage(content=answer)]}

    return compose_node


def suggest_node(state: ResearchState) -> dict[str, Any]:
    return {"follow_ups": _follow_ups(state.get("query", ""), state.get("ticker"))}


# ===================================================================== #
#  Graph                                                                  #
# ===================================================================== #


def build_research_graph(
    model: BaseChatModel | None = None,
    seed: int | None = None,
    max_sources: int = 10,
    checkpointer: Any | None = None,
) -> Any:
    """Build and compile the scripted research StateGraph.

    Parameters
    ----------
    model:
        Chat model composing the answer.  Defaults to a
        :class:`ScriptedChatModel` that restates the question.
    seed:
        Seed for the generator drawing source counts and metadata.
    max_sources:
        Upper bound on the number of sources per query (at least 3).
    checkpointer:
        Optional LangGraph checkpointer for persistence.

    Returns
    -------
    CompiledStateGraph
        A compiled graph ready for ``.invoke()`` or ``.stream()``.
    """
    if max_sources < 3:
        raise ValueError(f"max_sources must be >= 3, got {max_sources}")
    rng = np.random.default_rng(seed)
    chat_model = model if model is not None else ScriptedChatModel()

    graph = StateGraph(ResearchState)
    graph.add_node("acknowledge", acknowledge_node)
    graph.add_node("search", make_search_node(rng, max_sources))
    graph.add_node("sources_done", sources_done_node)
    graph.add_node("compose", make_compose_node(chat_model))
    graph.add_node("suggest", suggest_node)

    graph.add_edge(START, "acknowledge")
    graph.add_edge("acknowledge", "search")
    graph.add_edge("search", "sources_done")
    graph.add_edge("sources_done", "compose")
    graph.add_edge("compose", "suggest")
    graph.add_edge("suggest", END)

    return graph.compile(checkpointer=checkpointer)

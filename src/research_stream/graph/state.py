"""LangGraph state definition for the research pipeline.

Defines ``ResearchState``, the ``TypedDict`` flowing through the research
``StateGraph``.  Facet channels are plain last-value channels, matching the
replacing semantics of the fragments they become; the conversation channel
uses ``add_messages`` so nodes can append replies.

Note: We intentionally do NOT use ``from __future__ import annotations`` because
LangGraph needs to resolve type hints at runtime via ``get_type_hints()``.
"""

from typing import Annotated, Any, TypedDict

from langchain_core.messages import BaseMessage
from langgraph.graph.message import add_messages


class ResearchState(TypedDict, total=False):
    """State flowing through the research LangGraph.

    Each key a node returns becomes one or more wire fragments when the
    graph is streamed with ``stream_mode="updates"``.
    """

    # -- Input
    query: str
    history: Annotated[list[BaseMessage], add_messages]

    # -- Facets (replacing)
    sources: list[dict[str, Any]]
    news: list[dict[str, Any]]
    images: list[dict[str, Any]]
    ticker: str | None
    follow_ups: list[str]
    status: dict[str, Any]

    # -- Prose
    answer: str

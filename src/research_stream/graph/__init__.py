"""LangGraph bridge for the research stream engine.

Public API
----------
build_research_graph
    Build and compile the scripted research pipeline.
ResearchState
    The TypedDict state flowing through the graph.
GraphTransport
    Streams a compiled graph into a ``MessageStore``.
format_stream_fragments, collect_stream_fragments, update_to_fragments
    Map ``stream_mode="updates"`` chunks onto wire fragments.
to_langchain_messages, from_langchain_messages
    Convert between store messages and LangChain chat messages.
"""

from research_stream.graph.messages import (
    from_langchain_messages,
    message_content_text,
    to_langchain_messages,
)
from research_stream.graph.scripted import build_research_graph, detect_ticker
from research_stream.graph.state import ResearchState
from research_stream.graph.streaming import (
    GraphTransport,
    collect_stream_fragments,
    format_stream_fragments,
    update_to_fragments,
)

__all__ = [
    # Graph
    "ResearchState",
    "build_research_graph",
    "detect_ticker",
    # Streaming
    "GraphTransport",
    "collect_stream_fragments",
    "format_stream_fragments",
    "update_to_fragments",
    # Messages
    "from_langchain_messages",
    "message_content_text",
    "to_langchain_messages",
]

"""Stream formatters and transport for the research graph.

Turns the chunks produced by ``.stream(..., stream_mode="updates")`` into wire
fragments and feeds them into a :class:`MessageStore`, which is how a
LangGraph pipeline becomes the inbound stream of the engine.

Update keys map to fragments as follows:

* ``sources`` / ``news`` / ``images`` -> one ``data-sources`` fragment
* ``ticker`` -> ``data-ticker``
* ``follow_ups`` -> ``data-followup``
* ``status`` -> ``data-status``
* ``answer`` -> ``text``

Any other key (``history``, ``query``) is internal to the graph.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from research_stream.graph.messages import to_langchain_messages
from research_stream.infrastructure.message_store import MessageStore

logger = logging.getLogger(__name__)

_SOURCE_KEYS = {"sources": "sources", "news": "newsResults", "images": "imageResults"}


def update_to_fragments(update: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Map one node's state update onto zero or more wire fragments."""
    fragments: list[dict[str, Any]] = []

    group = {wire: update[key] for key, wire in _SOURCE_KEYS.items() if key in update}
    if group:
        fragments.append({"type": "data-sources", "data": group})
    if "ticker" in update:
        fragments.append({"type": "data-ticker", "data": {"symbol": update["ticker"]}})
    if "follow_ups" in update:
        fragments.append({
            "type": "data-followup",
            "data": {"questions": list(update["follow_ups"] or [])},
        })
    if "status" in update:
        status = update["status"] or {}
        fragments.append({
            "type": "data-status",
            "data": {
                "message": status.get("message", ""),
                "isComplete": bool(status.get("is_complete", False)),
            },
        })
    if update.get("answer"):
        fragments.append({"type": "text", "text": update["answer"]})
    return fragments


def format_stream_fragments(
    stream: Iterator[dict[str, Any]],
) -> Iterator[dict[str, Any]]:
    """Convert LangGraph stream chunks into wire fragments.

    Parameters
    ----------
    stream:
        The iterator from ``graph.stream(initial_state, stream_mode="updates")``.
        Each chunk is a dict mapping node name to its state update.

    Yields
    ------
    dict[str, Any]
        Wire fragments, in node order.
    """
    for chunk in stream:
        for node_name, state_update in chunk.items():
            if not isinstance(state_update, Mapping):
                continue
            for fragment in update_to_fragments(state_update):
                logger.debug("%s -> %s", node_name, fragment["type"])
                yield fragment


def collect_stream_fragments(
    stream: Iterator[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Collect all stream fragments into a list.

    Convenience wrapper around :func:`format_stream_fragments`.
    """
    return list(format_stream_fragments(stream))


class GraphTransport:
    """Runs a compiled research graph and streams its output into a store.

    Parameters
    ----------
    app:
        A compiled graph accepting ``{"query", "history"}``.
    store:
        Store receiving the assistant message and its fragments.
    pace:
        Optional callable invoked after each appended fragment (the CLI uses
        it to move a manual clock so progress visibly advances).
    """

    def __init__(
        self,
        app: Any,
        store: MessageStore,
        pace: Callable[[], None] | None = None,
    ) -> None:
        self._app = app
        self._store = store
        self._pace = pace

    def send(self, query: str) -> None:
        """Stream the graph's answer to *query*.

        The user message is expected to be in the store already.  Graph
        failures end the response with an ``ERROR`` status.
        """
        initial = {"query": query, "history": to_langchain_messages(self._store.messages)}
        self._store.open_assistant()
        try:
            stream = self._app.stream(initial, stream_mode="updates")
            for fragment in format_stream_fragments(stream):
                self._store.append_fragment(fragment)
                if self._pace is not None:
                    self._pace()
        except Exception:
            logger.exception("Research graph failed for query %r", query)
            self._store.finish(error=True)
            return
        self._store.finish()

    __call__ = send

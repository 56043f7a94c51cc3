"""Stream reconciler: push-driven glue between the message store and the turn.

The reconciler subscribes to ``MessagesChanged`` and, on every notification,
derives what happened from the store's current contents:

1. a new user message while the transport is processing -> expect a turn;
2. more assistant messages than seen before -> begin a turn per new one;
3. new fragments on the newest assistant message -> demultiplex and apply;
4. transport no longer processing -> complete the live turn.

Each step compares against counters the reconciler owns, so a redundant
notification (or a direct :meth:`reconcile` call from an unrelated redraw)
changes nothing.  No engine error escapes to the publisher.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from research_stream.domain.entities import Message
from research_stream.domain.events import MessagesChanged
from research_stream.domain.exceptions import ResearchStreamError
from research_stream.infrastructure.event_bus import EventBus
from research_stream.infrastructure.message_store import MessageStore
from research_stream.services.accumulator import TurnAccumulator
from research_stream.services.history import TurnHistoryCache
from research_stream.services.pairing import TurnView, pair_turns

logger = logging.getLogger(__name__)


def _query_for_response(messages: Sequence[Message], response_number: int) -> str:
    """Text of the user message preceding the *response_number*-th assistant message."""
    query = ""
    seen = 0
    for message in messages:
        if message.is_user:
            query = message.text
        elif message.is_assistant:
            if seen == response_number:
                return query
            seen += 1
    return query


class StreamReconciler:
    """Keeps a :class:`TurnAccumulator` in step with a :class:`MessageStore`.

    Parameters
    ----------
    store:
        The conversation being streamed into.
    accumulator:
        Owner of the live turn.
    history:
        Cache of frozen turns, read by :meth:`turns`.
    event_bus:
        Bus on which the store publishes ``MessagesChanged``.
    """

    def __init__(
        self,
        store: MessageStore,
        accumulator: TurnAccumulator,
        history: TurnHistoryCache,
        event_bus: EventBus,
    ) -> None:
        self._store = store
        self._accumulator = accumulator
        self._history = history
        self._bus = event_bus
        self._seen_users = 0
        self._seen_assistants = 0
        self._attached = False

    def attach(self) -> StreamReconciler:
        """Subscribe to store notifications.  Idempotent."""
        if not self._attached:
            self._bus.subscribe(MessagesChanged, self._on_messages_changed)
            self._attached = True
        return self

    def detach(self) -> None:
        if self._attached:
            self._bus.unsubscribe(MessagesChanged, self._on_messages_changed)
            self._attached = False

    def _on_messages_changed(self, event: MessagesChanged) -> None:
        self.reconcile()

    def reconcile(self) -> None:
        """Bring the accumulator up to date with the store.  Safe to repeat."""
        try:
            self._reconcile()
        except ResearchStreamError:
            logger.exception("Reconciliation failed; live facets left as they were")

    def _reconcile(self) -> None:
        messages = self._store.messages
        if not messages:
            return
        status = self._store.status
        last = messages[-1]

        user_count = sum(1 for m in messages if m.is_user)
        if user_count > self._seen_users:
            self._seen_users = user_count
            if last.is_user and status.is_processing:
                self._accumulator.expect_turn(last.text)

        assistant_count = sum(1 for m in messages if m.is_assistant)
        if assistant_count - self._seen_assistants > 1:
            logger.warning(
                "%d responses opened in one notification; earlier ones get empty facets",
                assistant_count - self._seen_assistants,
            )
        while self._seen_assistants < assistant_count:
            query = _query_for_response(messages, self._seen_assistants)
            self._seen_assistants += 1
            self._accumulator.begin_turn(query)

        if last.is_assistant and self._accumulator.turn_index == assistant_count - 1:
            self._accumulator.ingest(last.fragments)

        if not status.is_processing:
            if last.is_assistant and self._accumulator.has_live_turn:
                self._accumulator.complete()
            elif self._accumulator.progress.is_active:
                # Failed before a response slot opened.
                self._accumulator.progress.complete()

    def turns(self) -> list[TurnView]:
        """The conversation as paired turns with their resolved facets."""
        return pair_turns(self._store.messages, self._accumulator, self._history)

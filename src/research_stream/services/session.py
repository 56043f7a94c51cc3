"""Research session: the user-facing actions around a streamed conversation.

The session validates and routes queries; it never touches facets itself.
Submitting appends the user message to the store (which, through the
reconciler, starts the awaiting-phase progress estimate) and then hands the
query to the transport's ``send`` callable.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from research_stream.domain.events import DomainEvent, QueryDeferred, QuerySubmitted
from research_stream.infrastructure.event_bus import EventBus
from research_stream.infrastructure.message_store import MessageStore
from research_stream.services.accumulator import TurnAccumulator

logger = logging.getLogger(__name__)

SendFn = Callable[[str], None]


class ResearchSession:
    """Submit, defer, follow up on and rewrite queries.

    Parameters
    ----------
    store:
        Conversation the queries are appended to.
    accumulator:
        Live turn, read for its follow-up questions.
    send:
        Called with each accepted query after it has been recorded.  It is
        expected to open the assistant slot and stream into *store*.
    has_credentials:
        Without credentials a submitted query is held as pending until
        :meth:`provide_credentials` is called.
    event_bus:
        Optional bus for ``QuerySubmitted`` / ``QueryDeferred``.
    """

    def __init__(
        self,
        store: MessageStore,
        accumulator: TurnAccumulator,
        send: SendFn | None = None,
        has_credentials: bool = True,
        event_bus: EventBus | None = None,
    ) -> None:
        self._store = store
        self._accumulator = accumulator
        self._send = send
        self._has_credentials = has_credentials
        self._bus = event_bus
        self._pending_query: str | None = None

    @property
    def has_credentials(self) -> bool:
        return self._has_credentials

    @property
    def pending_query(self) -> str | None:
        return self._pending_query

    def bind_transport(self, send: SendFn) -> None:
        """Set the callable accepted queries are handed to."""
        self._send = send

    def submit(self, query: str) -> bool:
        """Submit *query*.  Returns ``True`` if it was sent to the transport."""
        query = query.strip()
        if not query:
            logger.debug("Ignoring blank query")
            return False
        if self._store.status.is_processing:
            logger.warning("Query refused while a response is in flight: %r", query)
            return False
        if not self._has_credentials:
            self._pending_query = query
            logger.info("No credentials yet; holding query %r", query)
            self._publish(QueryDeferred(source_id="session", query=query))
            return False

        self._pending_query = None
        self._store.append_user(query)
        self._publish(QuerySubmitted(source_id="session", query=query))
        if self._send is not None:
            self._send(query)
        return True

    def provide_credentials(self) -> bool:
        """Mark credentials present and submit any held query."""
        self._has_credentials = True
        pending = self._pending_query
        if pending is None:
            return False
        return self.submit(pending)

    def follow_up(self, index: int) -> bool:
        """Submit the *index*-th follow-up question of the live turn.

        Raises
        ------
        IndexError
            If the live turn has no follow-up at *index*.
        """
        questions = self._accumulator.snapshot.follow_ups or ()
        if not 0 <= index < len(questions):
            raise IndexError(
                f"follow-up {index} out of range ({len(questions)} available)"
            )
        return self.submit(questions[index])

    def rewrite(self) -> bool:
        """Resubmit the most recent user query."""
        query = self._store.last_user_text()
        if not query:
            logger.debug("Nothing to rewrite")
            return False
        return self.submit(query)

    def _publish(self, event: DomainEvent) -> None:
        if self._bus is not None:
            self._bus.publish(event)

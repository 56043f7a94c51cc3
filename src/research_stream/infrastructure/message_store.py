"""In-memory message store: the transport side of the inbound stream.

The store owns the ordered, append-only message list and the transport
status.  Every mutation publishes a ``MessagesChanged`` event so consumers are
pushed changes instead of polling for them.  Consumers only ever read the
messages; writing is reserved for the transport (a backend bridge, a
replay, or a test).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from research_stream.domain.entities import Message
from research_stream.domain.enums import ChatStatus, Role
from research_stream.domain.events import MessagesChanged
from research_stream.domain.exceptions import ResearchStreamError
from research_stream.infrastructure.event_bus import EventBus

logger = logging.getLogger(__name__)


class MessageStore:
    """Append-only conversation with change notification.

    Parameters
    ----------
    event_bus:
        Bus on which ``MessagesChanged`` is published after each mutation.
    """

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus
        self._messages: list[Message] = []
        self._status = ChatStatus.READY

    # -- read side -----------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def status(self) -> ChatStatus:
        return self._status

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def assistant_count(self) -> int:
        return sum(1 for m in self._messages if m.role is Role.ASSISTANT)

    def last_user_text(self) -> str:
        for message in reversed(self._messages):
            if message.is_user:
                return message.text
        return ""

    def __len__(self) -> int:
        return len(self._messages)

    # -- transport side ---------------------------------------------------

    def append_user(self, text: str) -> Message:
        """Record a submitted query; the status becomes ``SUBMITTED``."""
        message = Message.user(text)
        self._messages.append(message)
        self._status = ChatStatus.SUBMITTED
        self._notify()
        return message

    def open_assistant(self) -> Message:
        """Open the assistant slot for the pending query; status ``STREAMING``."""
        message = Message.assistant()
        self._messages.append(message)
        self._status = ChatStatus.STREAMING
        self._notify()
        return message

    def append_fragment(self, fragment: Mapping[str, Any] | Any) -> None:
        """Append a fragment to the streaming assistant message."""
        last = self.last
        if last is None or not last.is_assistant:
            raise ResearchStreamError(
                "no assistant message is open for fragments",
                details={"message_count": len(self._messages)},
            )
        last.append(fragment)
        self._notify()

    def append_text(self, text: str) -> None:
        self.append_fragment({"type": "text", "text": text})

    def finish(self, error: bool = False) -> None:
        """Mark the in-flight response finished (``READY``) or failed (``ERROR``)."""
        self._status = ChatStatus.ERROR if error else ChatStatus.READY
        self._notify()

    def _notify(self) -> None:
        self._bus.publish(
            MessagesChanged(
                source_id="message_store",
                message_count=len(self._messages),
                status=self._status,
            )
        )

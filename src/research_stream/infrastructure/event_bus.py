"""In-process event dispatch for the research stream engine.

The message store announces every change on an :class:`EventBus`; the
reconciler, the progress estimator and any UI listen there.  Dispatch is
synchronous so that facets are up to date by the time ``append_fragment``
returns.  A subscriber that raises is logged and skipped: a rendering bug
must not abort the transport call that triggered the notification.

:class:`EventLog` keeps what was published, mostly for tests and for the
``replay`` command's debug output.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TypeVar

from research_stream.domain.events import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]
E = TypeVar("E", bound=DomainEvent)


@dataclass(frozen=True)
class _Subscription:
    """One registration; ``event_type=None`` receives everything."""

    handler: Handler
    event_type: type[DomainEvent] | None = None

    @property
    def is_global(self) -> bool:
        return self.event_type is None

    def wants(self, event: DomainEvent) -> bool:
        return self.event_type is None or type(event) is self.event_type


# ===================================================================== #
#  Event Bus                                                             #
# ===================================================================== #

class EventBus:
    """Synchronous pub-sub keyed on the exact event class.

    Catch-all subscribers run before typed ones; within each group the
    order is registration order.  Events published from inside a handler
    are dispatched immediately, before the outer dispatch continues.

    Usage::

        bus = EventBus()
        bus.subscribe(TurnFrozen, on_frozen)
        bus.subscribe_all(log.append)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[_Subscription] = []

    def subscribe(self, event_type: type[DomainEvent], handler: Handler) -> None:
        with self._lock:
            self._subscriptions.append(_Subscription(handler, event_type))

    def subscribe_all(self, handler: Handler) -> None:
        """Register *handler* for every event, whatever its class."""
        with self._lock:
            self._subscriptions.append(_Subscription(handler))

    def unsubscribe(self, event_type: type[DomainEvent], handler: Handler) -> bool:
        """Drop the first registration of *handler* for *event_type*.

        Returns ``False`` when there was none.
        """
        return self._remove(_Subscription(handler, event_type))

    def unsubscribe_all(self, handler: Handler) -> bool:
        """Drop a catch-all registration made with :meth:`subscribe_all`."""
        return self._remove(_Subscription(handler))

    def _remove(self, target: _Subscription) -> bool:
        with self._lock:
            for i, sub in enumerate(self._subscriptions):
                if sub == target:
                    del self._subscriptions[i]
                    return True
        return False

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            matching = [s for s in self._subscriptions if s.wants(event)]
        # stable sort: catch-alls first, registration order kept inside groups
        matching.sort(key=lambda s: not s.is_global)

        for sub in matching:
            try:
                sub.handler(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on %s", sub.handler, type(event).__name__
                )

    def handler_count(self, event_type: type[DomainEvent] | None = None) -> int:
        """Number of typed registrations for *event_type*, or of all registrations."""
        with self._lock:
            if event_type is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.event_type is event_type)

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()


# ===================================================================== #
#  Event Log                                                             #
# ===================================================================== #

class EventLog:
    """Ordered record of published events.

    Attach with ``bus.subscribe_all(log.append)``.  A positive *max_size*
    bounds the log to the newest entries.
    """

    def __init__(self, max_size: int = 0) -> None:
        self._events: list[DomainEvent] = []
        self._max_size = max_size

    def append(self, event: DomainEvent) -> None:
        self._events.append(event)
        overflow = len(self._events) - self._max_size
        if self._max_size > 0 and overflow > 0:
            del self._events[:overflow]

    def of_type(self, event_type: type[E]) -> list[E]:
        return [e for e in self._events if isinstance(e, event_type)]

    @property
    def latest(self) -> DomainEvent | None:
        return self._events[-1] if self._events else None

    def __iter__(self) -> Iterator[DomainEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()

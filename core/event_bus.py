"""
Event bus for invoice and transaction events.

Synchronous in-process pub/sub. Handlers execute immediately in the same
thread as the publisher. Handler errors are logged but never propagate;
the store write that produced the event has already committed.
"""

import logging
from typing import Callable, Dict, List

from core.events import DomainEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus for domain events.

    Subscribe by event class or class name, publish by event instance.
    Subscribing to a base class (e.g. InvoiceEvent) receives every subclass.
    Handlers are called synchronously in subscription order, most specific
    event type first.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str | type, callback: Callable) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event class, or its name (e.g. 'InvoicePaid')
            callback: Function to call when event is published
        """
        name = event_type if isinstance(event_type, str) else event_type.__name__
        self._subscribers.setdefault(name, []).append(callback)

    def subscriber_count(self, event_type: str | type) -> int:
        name = event_type if isinstance(event_type, str) else event_type.__name__
        return len(self._subscribers.get(name, []))

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to subscribers of its class and its base classes.

        Handler errors are logged with the event id and swallowed.
        """
        for cls in type(event).__mro__:
            if cls is object:
                break
            for callback in self._subscribers.get(cls.__name__, []):
                try:
                    callback(event)
                except Exception:
                    logger.exception(
                        "Handler %s failed for %s (event_id=%s)",
                        getattr(callback, "__name__", repr(callback)),
                        type(event).__name__,
                        event.event_id,
                    )

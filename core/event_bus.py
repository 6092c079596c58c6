"""
Event bus for donation lifecycle events.

Events are delivered synchronously on the publishing thread, which is a
request worker or the background sweeper. The coordinator publishes only
after it has released the per-invoice lock, so a handler may call back into
the coordinator. A failing handler is logged and skipped; the invoice or
ledger change it announces is already in place.
"""

import logging
import threading
from typing import Callable, Dict, Iterable, List, Type, Union

from core.events import LifecycleEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[LifecycleEvent], None]


def _event_names(base: Type[LifecycleEvent] = LifecycleEvent) -> set[str]:
    names = set()
    for cls in base.__subclasses__():
        names.add(cls.__name__)
        names |= _event_names(cls)
    return names


class EventBus:
    """
    Lifecycle event dispatcher.

    Subscribe by event class or class name. Handlers for a type run in
    subscription order. Registration and publishing may happen from
    different threads.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: Union[str, Type[LifecycleEvent]], callback: EventHandler):
        """
        Register a handler for one lifecycle event type.

        Args:
            event_type: Event class, or its name (e.g. 'DonationRecorded')
            callback: Called with each published event of that type

        Raises:
            ValueError: If event_type names no lifecycle event
        """
        name = event_type if isinstance(event_type, str) else event_type.__name__
        known = _event_names()
        if name not in known:
            raise ValueError(
                f"Unknown lifecycle event '{name}', expected one of {', '.join(sorted(known))}"
            )
        with self._lock:
            self._subscribers.setdefault(name, []).append(callback)

    def publish(self, event: LifecycleEvent):
        """Deliver one event to the handlers of its type."""
        event_type = event.__class__.__name__
        with self._lock:
            handlers = list(self._subscribers.get(event_type, ()))

        for callback in handlers:
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )

    def publish_all(self, events: Iterable[LifecycleEvent]):
        """Deliver events in the order the changes happened."""
        for event in events:
            self.publish(event)

"""Synchronous in-process bus for booking lifecycle events."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

from booking_scheduler.utils.logger import get_logger

logger = get_logger(__name__)

Handler = Callable[[Any], None]


class EventBus:
    """Publish/subscribe bus keyed by event class.

    Handlers run synchronously in subscription order; an exception raised by a
    handler reaches the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._subscribers[event_type].append(handler)

    def publish(self, event: Any) -> None:
        handlers = self._subscribers.get(type(event), [])
        logger.debug("Publishing %s to %d handler(s)", type(event).__name__, len(handlers))
        for handler in handlers:
            handler(event)

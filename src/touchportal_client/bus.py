"""Event Bus - per-session pub/sub for consumer events.

Subscribers register for one ``EventType`` or for everything. Publishing
awaits each subscriber in registration order, so events reach a given
callback in exactly the order they were published.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from .protocol.events import Event, EventType

logger = logging.getLogger(__name__)

# Callbacks may be plain functions or coroutine functions
EventCallback = Callable[[Event], Awaitable[None] | None]

_ALL = "*"


class EventBus:
    """Event bus with per-type and wildcard subscription.

    Usage:
        bus = EventBus()
        bus.subscribe(EventType.ACTION, on_action)
        await bus.publish(Event(type=EventType.ACTION, data=record, hold=True))
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[EventCallback]] = {}

    def subscribe(self, event_type: EventType | str, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to a specific event type.

        Args:
            event_type: The event category to receive
            callback: Called with each matching Event (sync or async)

        Returns:
            Unsubscribe function
        """
        return self._subscribe(EventType(event_type).value, callback)

    def subscribe_all(self, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to ALL events.

        Args:
            callback: Called with every published Event

        Returns:
            Unsubscribe function
        """
        return self._subscribe(_ALL, callback)

    def _subscribe(self, key: str, callback: EventCallback) -> Callable[[], None]:
        """Internal subscribe implementation."""
        self._subscriptions.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            if key in self._subscriptions and callback in self._subscriptions[key]:
                self._subscriptions[key].remove(callback)

        return unsubscribe

    async def publish(self, event: Event) -> None:
        """Deliver an event to all matching subscribers.

        Subscriber errors are logged and do not prevent delivery to the
        remaining subscribers.
        """
        # Copies so callbacks can unsubscribe while we iterate
        specific_subs = list(self._subscriptions.get(event.type.value, []))
        wildcard_subs = list(self._subscriptions.get(_ALL, []))

        for callback in specific_subs + wildcard_subs:
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Error in subscriber for {event.type.value}")

    async def stream(self) -> AsyncIterator[Event]:
        """Create an async iterator that yields all events.

        Usage:
            async for event in bus.stream():
                print(event.type, event.data)
        """
        queue: asyncio.Queue[Event] = asyncio.Queue()
        unsubscribe = self.subscribe_all(queue.put_nowait)

        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()

    def subscriber_count(self, event_type: EventType | str | None = None) -> int:
        """Number of subscribers for a type, or wildcard subscribers if None."""
        key = _ALL if event_type is None else EventType(event_type).value
        return len(self._subscriptions.get(key, []))

    def clear(self) -> None:
        """Remove every subscription."""
        self._subscriptions = {}


def describe(event: Event) -> dict[str, Any]:
    """JSON-friendly view of an event (used by the CLI)."""
    payload: dict[str, Any] = {"event": event.type.value, "data": event.data}
    if event.type is EventType.ACTION:
        payload["hold"] = event.hold
    return payload

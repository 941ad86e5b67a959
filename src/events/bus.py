"""In-process delivery of committed scheduling events.

The engine commits state rows and event rows in one batch and only then
hands the events to this bus. Subscribers such as the notification
dispatcher therefore never react to a booking that was rolled back.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from src.events.base import Event

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Event)
EventHandler = Callable[[Event], None] | Callable[[Event], Awaitable[None]]


class EventBus:
    """Routes events to handlers subscribed to their class or a base class.

    Subscribing to ``Event`` itself receives everything, which is how audit
    consumers attach. Handler failures are logged and isolated; they never
    reach the booking that produced the event.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[Event], list[EventHandler]] = {}

    def subscribe(
        self,
        event_type: type[T],
        handler: Callable[[T], None] | Callable[[T], Awaitable[None]],
    ) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type.__name__}")

    def unsubscribe(self, event_type: type[T], handler: EventHandler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            logger.debug(f"Unsubscribed handler from {event_type.__name__}")

    def handlers_for(self, event: Event) -> list[EventHandler]:
        """Handlers of the event's class and its Event ancestors, most specific first."""
        handlers: list[EventHandler] = []
        for cls in type(event).__mro__:
            if isinstance(cls, type) and issubclass(cls, Event):
                handlers.extend(self._subscribers.get(cls, []))
        return handlers

    async def publish(self, event: Event) -> None:
        """Deliver one event to its handlers concurrently."""
        handlers = self.handlers_for(event)
        logger.debug(f"Publishing {event.event_type} to {len(handlers)} handler(s)")
        if not handlers:
            return

        results = await asyncio.gather(
            *(self._run(handler, event) for handler in handlers),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error(
                    f"Handler error for {event.event_type} "
                    f"(event {event.event_id}, batch {event.correlation_id}): {result}"
                )

    async def publish_committed(self, events: Iterable[Event]) -> None:
        """Publish events whose rows were already committed, in commit order."""
        for event in events:
            await self.publish(event)

    @staticmethod
    async def _run(handler: EventHandler, event: Event) -> None:
        if inspect.iscoroutinefunction(handler):
            await handler(event)
        else:
            # Sync handlers run in the default thread pool
            await asyncio.to_thread(handler, event)

    def subscriber_count(self, event_type: type[Event]) -> int:
        """Handlers subscribed directly to an event type."""
        return len(self._subscribers.get(event_type, []))

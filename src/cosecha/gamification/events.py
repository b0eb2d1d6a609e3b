"""In-process publish/subscribe for achievement events.

``publish`` never waits for subscribers: each delivery runs as its own
asyncio task, so a slow or failing consumer cannot stall or fail the
award that produced the event.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger()

E = TypeVar("E")

Handler = Callable[[E], Awaitable[None] | None]


class Subscription(Generic[E]):
    """Handle returned by :meth:`EventBus.subscribe`."""

    def __init__(self, bus: EventBus, event_type: type[E], handler: Handler[E]) -> None:
        self._bus = bus
        self.event_type = event_type
        self.handler = handler

    def cancel(self) -> None:
        self._bus.unsubscribe(self)


class EventBus:
    """Typed fan-out of events to independently registered handlers."""

    def __init__(self) -> None:
        self._subscriptions: dict[type, list[Subscription[Any]]] = {}
        self._pending: set[asyncio.Task[None]] = set()

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> Subscription[E]:
        subscription = Subscription(self, event_type, handler)
        self._subscriptions.setdefault(event_type, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription[Any]) -> None:
        subs = self._subscriptions.get(subscription.event_type, [])
        if subscription in subs:
            subs.remove(subscription)

    def subscriber_count(self, event_type: type) -> int:
        return len(self._subscriptions.get(event_type, []))

    def publish(self, event: object) -> int:
        """Schedule delivery to every current subscriber. Returns deliveries scheduled.

        Must be called from a running event loop.
        """
        subs = list(self._subscriptions.get(type(event), []))
        loop = asyncio.get_running_loop()
        for subscription in subs:
            task = loop.create_task(self._deliver(subscription, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return len(subs)

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _deliver(self, subscription: Subscription[Any], event: object) -> None:
        try:
            result = subscription.handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "event_subscriber_failed",
                event_type=type(event).__name__,
                handler=getattr(subscription.handler, "__qualname__", repr(subscription.handler)),
            )

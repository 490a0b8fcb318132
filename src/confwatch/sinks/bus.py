"""In-process fan-out of refresh events."""

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable

from confwatch.models.events import RefreshEvent

_logger = logging.getLogger(__name__)

Subscriber = Callable[[RefreshEvent], Awaitable[None] | None]


class EventBus:
    """Deliver each published event to every current subscriber.

    Subscribers may be plain or ``async`` callables and run in subscription
    order on the publisher's event loop. A failing subscriber is logged and
    skipped; it never fails :meth:`publish` nor prevents delivery to the
    remaining subscribers.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._published = 0

    @property
    def published(self) -> int:
        """Number of events published so far."""
        return self._published

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register *subscriber* and return a callable that removes it."""
        self._subscribers.append(subscriber)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers.remove(subscriber)

        return _unsubscribe

    async def publish(self, event: RefreshEvent) -> None:
        self._published += 1
        subscribers = list(self._subscribers)
        _logger.debug("Publishing refresh event to %d subscribers changes=%d", len(subscribers), len(event.changes))
        for subscriber in subscribers:
            try:
                result = subscriber(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                _logger.warning("Refresh event subscriber %r failed", subscriber, exc_info=True)

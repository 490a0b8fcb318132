"""Notification sink interface."""

from __future__ import annotations

from typing import Protocol

from confwatch.models.events import RefreshEvent


class NotificationSink(Protocol):
    """Fire-and-forget publish capability.

    Completion means the event was handed over; it says nothing about how
    many subscribers processed it. Raising means the hand-over failed.
    """

    async def publish(self, event: RefreshEvent) -> None:
        ...

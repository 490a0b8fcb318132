"""Custom exception hierarchy for confwatch."""

from __future__ import annotations

from collections.abc import Mapping


class ConfWatchError(Exception):
    """Base exception for all confwatch errors."""


class ConfigError(ConfWatchError):
    """Invalid or conflicting watcher configuration."""


class TransportError(ConfWatchError):
    """A configuration store could not be queried (network, timeout, not found)."""

    def __init__(self, message: str, *, store: str = "") -> None:
        self.store = store
        super().__init__(message)


class RefreshError(ConfWatchError):
    """Every polled store failed during one refresh cycle.

    ``failures`` maps each store name to the exception its query raised.
    """

    def __init__(self, message: str, *, failures: Mapping[str, BaseException]) -> None:
        self.failures = dict(failures)
        super().__init__(message)


class NotificationError(ConfWatchError):
    """Publishing a refresh event failed.

    State changes detected in the same cycle stay committed: the next cycle
    observes no further change and does not publish again.
    """

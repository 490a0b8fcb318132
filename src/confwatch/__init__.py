"""confwatch - Async refresh watcher for remote configuration stores."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("confwatch")
except PackageNotFoundError:
    __version__ = "0+local"
from confwatch.config import StoreConfig, WatchConfig
from confwatch.exceptions import (
    ConfigError,
    ConfWatchError,
    NotificationError,
    RefreshError,
    TransportError,
)
from confwatch.filters import resolve_label_filter, resolve_watched_key_filter
from confwatch.models import Category, ChangedCategory, RefreshEvent, Revision, RevisionSnapshot
from confwatch.refresh import RefreshScheduler
from confwatch.revisions import InMemoryRevisionClient, RevisionClient
from confwatch.sinks import EventBus, MqttSink, NotificationSink, WebhookSink
from confwatch.state import PollClock, StateStore

__all__ = [
    "__version__",
    "Category",
    "ChangedCategory",
    "ConfWatchError",
    "ConfigError",
    "EventBus",
    "InMemoryRevisionClient",
    "MqttSink",
    "NotificationError",
    "NotificationSink",
    "PollClock",
    "RefreshError",
    "RefreshEvent",
    "RefreshScheduler",
    "Revision",
    "RevisionClient",
    "RevisionSnapshot",
    "StateStore",
    "StoreConfig",
    "TransportError",
    "WatchConfig",
    "resolve_label_filter",
    "resolve_watched_key_filter",
]

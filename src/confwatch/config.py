"""Watcher configuration for confwatch."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from confwatch._constants import (
    DEFAULT_FEATURE_FLAG_FILTER,
    DEFAULT_REFRESH_INTERVAL,
    FILTER_SEPARATOR,
    WILDCARD,
)
from confwatch.exceptions import ConfigError


def parse_connection_string(value: str) -> dict[str, str]:
    """Split ``Endpoint=...;Id=...;Secret=...`` into its segments.

    Keys are matched case-insensitively and returned lowercased. Segment
    values may themselves contain ``=`` (base64 secrets do).
    """
    segments: dict[str, str] = {}
    for raw in value.split(";"):
        part = raw.strip()
        if not part:
            continue
        key, sep, val = part.partition("=")
        if not sep:
            raise ConfigError(f"Malformed connection string segment: {key!r}")
        segments[key.strip().lower()] = val.strip()
    return segments


def _normalize_endpoint(value: str) -> str:
    return value.strip().rstrip("/")


def _split_env_list(value: str | None, separator: str = ",") -> list[str]:
    if value is None:
        return []
    return [item.strip() for item in value.split(separator) if item.strip()]


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """One remote configuration store to watch.

    Parameters
    ----------
    endpoint : str
        Store endpoint URL. May be omitted when ``connection_string``
        carries an ``Endpoint=`` segment.
    connection_string : str or None
        ``Endpoint=...;Id=...;Secret=...`` connection descriptor.
    name : str
        Store identifier used as the state key. Defaults to the endpoint host.
    watched_key : str or None
        Key filter watched for the ``configuration`` category. A trailing
        ``*`` selects every key under the prefix. When unset the filter is
        derived from the profile contexts of the store.
    feature_flag_filter : str
        Key filter watched for the ``feature-flag`` category.
    labels : tuple of str
        Label filters. Empty selects settings without a label.
    monitoring_enabled : bool
        Stores with monitoring disabled are never polled.
    """

    endpoint: str = ""
    connection_string: str | None = None
    name: str = ""
    watched_key: str | None = None
    feature_flag_filter: str = DEFAULT_FEATURE_FLAG_FILTER
    labels: tuple[str, ...] = ()
    monitoring_enabled: bool = True

    def __post_init__(self) -> None:
        endpoint = _normalize_endpoint(self.endpoint)

        if self.connection_string:
            segments = parse_connection_string(self.connection_string)
            conn_endpoint = _normalize_endpoint(segments.get("endpoint", ""))
            if not conn_endpoint:
                raise ConfigError("Connection string does not contain an Endpoint segment")
            if endpoint and endpoint != conn_endpoint:
                raise ConfigError(
                    f"Endpoint {endpoint!r} does not match the connection string endpoint {conn_endpoint!r}"
                )
            endpoint = conn_endpoint

        if not endpoint:
            raise ConfigError("Either an endpoint or a connection string must be provided")

        for label in self.labels:
            if WILDCARD in label:
                raise ConfigError(f"Label must not contain an asterisk(*): {label!r}")

        if self.watched_key is not None:
            if FILTER_SEPARATOR in self.watched_key:
                raise ConfigError(f"Watched key must be a single key filter, got {self.watched_key!r}")
            if self.watched_key.strip() == self.feature_flag_filter.strip():
                raise ConfigError(
                    f"Watched key {self.watched_key!r} conflicts with the feature flag filter"
                )

        name = self.name.strip() or (urlsplit(endpoint).hostname or endpoint)

        object.__setattr__(self, "endpoint", endpoint)
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "labels", tuple(label.strip() for label in self.labels))


@dataclasses.dataclass(frozen=True)
class WatchConfig:
    """Refresh watcher configuration.

    Parameters
    ----------
    stores : tuple of StoreConfig
        Stores to watch, in polling order.
    refresh_interval : float
        Minimum number of seconds between two poll attempts. Zero or a
        negative value disables rate limiting.
    contexts : mapping of str to tuple of str
        Profile context prefixes per store name (e.g. ``"/application/"``),
        used to derive the watched-key filter of stores without one.
    """

    stores: tuple[StoreConfig, ...]
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    contexts: Mapping[str, tuple[str, ...]] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        stores = tuple(self.stores)
        if not stores:
            raise ConfigError("At least one store must be configured")

        seen: set[str] = set()
        for store in stores:
            if store.name in seen:
                raise ConfigError(f"Duplicate store name: {store.name!r}")
            seen.add(store.name)

        unknown = set(self.contexts) - seen
        if unknown:
            raise ConfigError(f"Contexts given for unknown stores: {sorted(unknown)}")

        object.__setattr__(self, "stores", stores)
        object.__setattr__(
            self,
            "contexts",
            {name: tuple(values) for name, values in self.contexts.items()},
        )

    def contexts_for(self, store: StoreConfig | str) -> tuple[str, ...]:
        name = store if isinstance(store, str) else store.name
        return tuple(self.contexts.get(name, ()))

    @classmethod
    def from_env(cls, **overrides: Any) -> WatchConfig:
        """Create configuration from ``CONFWATCH_*`` environment variables.

        Reads ``CONFWATCH_ENDPOINTS`` (comma separated) and/or
        ``CONFWATCH_CONNECTION_STRINGS`` (``|`` separated, aligned with the
        endpoints when both are set). ``CONFWATCH_WATCHED_KEY``,
        ``CONFWATCH_LABELS`` and ``CONFWATCH_FEATURE_FLAG_FILTER`` apply to
        every store. Explicit keyword arguments override environment values.

        Returns
        -------
        WatchConfig
            Populated configuration.
        """
        env = os.environ

        if "stores" not in overrides:
            endpoints = _split_env_list(env.get("CONFWATCH_ENDPOINTS"))
            connection_strings = _split_env_list(env.get("CONFWATCH_CONNECTION_STRINGS"), "|")
            if endpoints and connection_strings and len(endpoints) != len(connection_strings):
                raise ConfigError("CONFWATCH_ENDPOINTS and CONFWATCH_CONNECTION_STRINGS differ in length")

            store_kwargs: dict[str, Any] = {}
            watched_key = env.get("CONFWATCH_WATCHED_KEY")
            if watched_key:
                store_kwargs["watched_key"] = watched_key
            labels = _split_env_list(env.get("CONFWATCH_LABELS"))
            if labels:
                store_kwargs["labels"] = tuple(labels)
            feature_filter = env.get("CONFWATCH_FEATURE_FLAG_FILTER")
            if feature_filter:
                store_kwargs["feature_flag_filter"] = feature_filter

            count = max(len(endpoints), len(connection_strings))
            stores = []
            for index in range(count):
                stores.append(
                    StoreConfig(
                        endpoint=endpoints[index] if endpoints else "",
                        connection_string=connection_strings[index] if connection_strings else None,
                        **store_kwargs,
                    )
                )
            overrides["stores"] = tuple(stores)

        interval_env = env.get("CONFWATCH_REFRESH_INTERVAL")
        if interval_env is not None and "refresh_interval" not in overrides:
            try:
                overrides["refresh_interval"] = float(interval_env)
            except ValueError as exc:
                raise ConfigError(f"Invalid CONFWATCH_REFRESH_INTERVAL: {interval_env!r}") from exc

        return cls(**overrides)

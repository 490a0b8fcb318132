"""Revision client interface and an in-memory implementation.

The refresh scheduler only talks to stores through :class:`RevisionClient`.
Having a protocol here makes it easy to plug a real store client or a test
double without the scheduler knowing about transports.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from confwatch.config import StoreConfig
from confwatch.exceptions import TransportError
from confwatch.filters import matches_filter, matches_label, resolve_watched_key_filter
from confwatch.models.events import Category
from confwatch.models.revision import Revision

_logger = logging.getLogger(__name__)


class RevisionClient(Protocol):
    """Structural interface of a configuration store query client."""

    async def list_revisions(
        self,
        store: StoreConfig,
        key_filter: str,
        label_filter: str,
    ) -> Sequence[Revision]:
        ...

    def resolve_watched_key_filter(
        self,
        store: StoreConfig,
        category: Category,
        contexts: Sequence[str] = (),
    ) -> str:
        ...


@dataclass(frozen=True)
class RevisionQuery:
    """One recorded ``list_revisions`` call."""

    store: str
    key_filter: str
    label_filter: str


@dataclass
class InMemoryRevisionClient:
    """Revision client backed by a dict of ``(key, label) -> etag`` per store.

    Useful for embedding the watcher without a remote store and as a test
    double. Every query is recorded in :attr:`queries`.
    """

    latency: float = 0.0
    queries: list[RevisionQuery] = field(default_factory=list)
    _settings: dict[str, dict[tuple[str, str | None], str]] = field(default_factory=dict)
    _failures: dict[str, BaseException] = field(default_factory=dict)

    def put(self, store: StoreConfig | str, key: str, etag: str, *, label: str | None = None) -> None:
        name = store if isinstance(store, str) else store.name
        self._settings.setdefault(name, {})[(key, label)] = etag

    def delete(self, store: StoreConfig | str, key: str, *, label: str | None = None) -> None:
        name = store if isinstance(store, str) else store.name
        self._settings.get(name, {}).pop((key, label), None)

    def fail_with(self, store: StoreConfig | str, error: BaseException | None) -> None:
        """Make every query against *store* raise *error* (``None`` clears it)."""
        name = store if isinstance(store, str) else store.name
        if error is None:
            self._failures.pop(name, None)
        else:
            self._failures[name] = error

    def resolve_watched_key_filter(
        self,
        store: StoreConfig,
        category: Category,
        contexts: Sequence[str] = (),
    ) -> str:
        return resolve_watched_key_filter(store, category, contexts)

    async def list_revisions(
        self,
        store: StoreConfig,
        key_filter: str,
        label_filter: str,
    ) -> list[Revision]:
        self.queries.append(RevisionQuery(store=store.name, key_filter=key_filter, label_filter=label_filter))
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        error = self._failures.get(store.name)
        if error is not None:
            raise error

        settings = self._settings.get(store.name)
        if settings is None:
            raise TransportError(f"Store {store.name!r} not found", store=store.name)

        revisions = [
            Revision(key=key, label=label, etag=etag)
            for (key, label), etag in sorted(settings.items(), key=lambda item: (item[0][0], item[0][1] or ""))
            if matches_filter(key, key_filter) and matches_label(label, label_filter)
        ]
        _logger.debug(
            "Listed %d revisions store=%s key_filter=%r",
            len(revisions),
            store.name,
            key_filter,
        )
        return revisions

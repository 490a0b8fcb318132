"""In-memory store of last observed revision snapshots."""

from __future__ import annotations

from collections.abc import Iterator

from confwatch.config import StoreConfig
from confwatch.models.events import Category
from confwatch.models.revision import RevisionSnapshot

StateKey = tuple[str, Category]


def _store_name(store: StoreConfig | str) -> str:
    return store if isinstance(store, str) else store.name


class StateStore:
    """Latest snapshot per ``(store name, category)``.

    Created empty, populated on the first successful poll of each category,
    replaced wholesale on later polls. Entries never expire; :meth:`clear`
    is the only way to drop them.
    """

    def __init__(self) -> None:
        self._entries: dict[StateKey, RevisionSnapshot] = {}

    def get(self, store: StoreConfig | str, category: Category) -> RevisionSnapshot | None:
        return self._entries.get((_store_name(store), category))

    def set(self, store: StoreConfig | str, category: Category, snapshot: RevisionSnapshot) -> None:
        self._entries[(_store_name(store), category)] = snapshot

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> Iterator[StateKey]:
        return iter(list(self._entries))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

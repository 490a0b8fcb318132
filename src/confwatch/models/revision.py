"""Revision and snapshot models.

A revision is the latest known version of one key as reported by a store.
Entity tags are opaque: they are compared for equality and never parsed or
ordered.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import Field, field_validator

from confwatch.models._base import ConfWatchModel


class Revision(ConfWatchModel):
    """A ``(key, etag)`` pair, optionally qualified by label."""

    key: str
    etag: str
    label: str | None = None

    @field_validator("key")
    @classmethod
    def _require_key(cls, value: str) -> str:
        if not value:
            raise ValueError("key must be non-empty")
        return value

    @property
    def identity(self) -> tuple[str, str | None, str]:
        return (self.key, self.label, self.etag)


class RevisionSnapshot(ConfWatchModel):
    """Revisions returned for one filter at one polling instant.

    ``revisions`` keeps the order the store reported. Comparison between
    snapshots goes through :attr:`tags`, which is order-independent and
    ignores duplicates.
    """

    revisions: tuple[Revision, ...] = ()
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def of(cls, revisions: Iterable[Revision], *, fetched_at: datetime | None = None) -> RevisionSnapshot:
        if fetched_at is None:
            return cls(revisions=tuple(revisions))
        return cls(revisions=tuple(revisions), fetched_at=fetched_at)

    @property
    def tags(self) -> frozenset[tuple[str, str | None, str]]:
        return frozenset(revision.identity for revision in self.revisions)

    def same_tags(self, other: RevisionSnapshot) -> bool:
        """Whether both snapshots hold the same set of revisions."""
        return self.tags == other.tags

    def __len__(self) -> int:
        return len(self.revisions)

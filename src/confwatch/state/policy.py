"""Change detection policy.

Snapshots are compared as sets of ``(key, label, etag)`` triples. Reordered
or duplicated revisions are not a change.
"""

from __future__ import annotations

from enum import StrEnum

from confwatch.models.revision import RevisionSnapshot


class SnapshotChange(StrEnum):
    BASELINE = "baseline"
    CHANGED = "changed"
    UNCHANGED = "unchanged"

    @property
    def should_store(self) -> bool:
        return self is not SnapshotChange.UNCHANGED

    @property
    def should_notify(self) -> bool:
        return self is SnapshotChange.CHANGED


def classify(previous: RevisionSnapshot | None, current: RevisionSnapshot) -> SnapshotChange:
    """Compare a freshly fetched snapshot with the stored one.

    With no stored snapshot the result is a baseline capture, which is
    recorded but never reported.
    """
    if previous is None:
        return SnapshotChange.BASELINE
    if previous.same_tags(current):
        return SnapshotChange.UNCHANGED
    return SnapshotChange.CHANGED

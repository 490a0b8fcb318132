"""Value models used by the refresh watcher."""

from confwatch.models.events import Category, ChangedCategory, RefreshEvent
from confwatch.models.revision import Revision, RevisionSnapshot

__all__ = [
    "Category",
    "ChangedCategory",
    "RefreshEvent",
    "Revision",
    "RevisionSnapshot",
]

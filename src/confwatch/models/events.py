"""Refresh categories and the refresh-event marker."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import Field

from confwatch._constants import REFRESH_EVENT_MESSAGE
from confwatch.models._base import ConfWatchModel


class Category(StrEnum):
    """Sub-namespace of a store polled independently."""

    CONFIGURATION = "configuration"
    FEATURE_FLAG = "feature-flag"


class ChangedCategory(ConfWatchModel):
    store: str
    category: Category


class RefreshEvent(ConfWatchModel):
    """Published once per refresh cycle that detected at least one change."""

    message: str = REFRESH_EVENT_MESSAGE
    changes: tuple[ChangedCategory, ...] = ()
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def stores(self) -> tuple[str, ...]:
        """Names of the stores that changed, in first-seen order."""
        return tuple(dict.fromkeys(change.store for change in self.changes))

"""Watched-key and label filter resolution.

Filters use a single wildcard form: a trailing ``*`` selects every key that
starts with the preceding prefix. Several filters may be joined with ``,``.
Anything else is a literal key.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from confwatch._constants import DEFAULT_WATCHED_KEY, FILTER_SEPARATOR, NULL_LABEL, WILDCARD
from confwatch.config import StoreConfig
from confwatch.models.events import Category

_logger = logging.getLogger(__name__)


def is_malformed(pattern: str) -> bool:
    """A ``*`` anywhere except the final position cannot be expanded."""
    return WILDCARD in pattern[:-1]


def split_filter(pattern: str) -> list[str]:
    """Split a comma-joined filter into its non-empty alternatives."""
    return [part.strip() for part in pattern.split(FILTER_SEPARATOR) if part.strip()]


def _matches_one(value: str, pattern: str) -> bool:
    if pattern == WILDCARD:
        return True
    if pattern.endswith(WILDCARD) and not is_malformed(pattern):
        return value.startswith(pattern[:-1])
    return value == pattern


def matches_filter(value: str, pattern: str) -> bool:
    """Whether *value* is selected by any alternative of *pattern*."""
    return any(_matches_one(value, part) for part in split_filter(pattern))


def _context_filter(contexts: Iterable[str]) -> str:
    patterns = [context if context.endswith(WILDCARD) else f"{context}{WILDCARD}" for context in contexts if context]
    return FILTER_SEPARATOR.join(dict.fromkeys(patterns))


def resolve_watched_key_filter(
    store: StoreConfig,
    category: Category,
    contexts: Iterable[str] = (),
) -> str:
    """Produce the key filter passed to the revision client.

    ``feature-flag`` always uses the store's feature flag filter. For
    ``configuration`` an explicit watched key wins; otherwise every profile
    context becomes a prefix filter, falling back to ``/application/*``.
    """
    if category is Category.FEATURE_FLAG:
        pattern = store.feature_flag_filter.strip()
    elif store.watched_key is not None and store.watched_key.strip():
        pattern = store.watched_key.strip()
    else:
        pattern = _context_filter(contexts) or DEFAULT_WATCHED_KEY

    if any(is_malformed(part) for part in split_filter(pattern)):
        _logger.debug("Using malformed key filter literally store=%s filter=%r", store.name, pattern)
    return pattern


def resolve_label_filter(store: StoreConfig) -> str:
    """Comma-join the store's labels, or select unlabeled settings."""
    labels = [label for label in store.labels if label]
    if not labels:
        return NULL_LABEL
    return FILTER_SEPARATOR.join(dict.fromkeys(labels))


def matches_label(label: str | None, label_filter: str) -> bool:
    """Whether a setting with *label* is selected by *label_filter*."""
    for part in label_filter.split(FILTER_SEPARATOR):
        if part == NULL_LABEL and label is None:
            return True
        if label is not None and part.strip() == label:
            return True
    return False

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from confwatch.models.events import Category, ChangedCategory, RefreshEvent
from confwatch.models.revision import Revision, RevisionSnapshot


def test_revision_is_frozen() -> None:
    revision = Revision(key="/application/a", etag="1")
    with pytest.raises(ValidationError):
        revision.etag = "2"  # type: ignore[misc]


def test_revision_requires_key() -> None:
    with pytest.raises(ValidationError):
        Revision(key="", etag="1")


def test_revision_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        Revision.model_validate({"key": "/a", "etag": "1", "value": "secret"})


def test_snapshot_tags_include_label() -> None:
    unlabeled = RevisionSnapshot.of([Revision(key="/a", etag="1")])
    labeled = RevisionSnapshot.of([Revision(key="/a", etag="1", label="prod")])
    assert not unlabeled.same_tags(labeled)
    assert unlabeled.tags == frozenset({("/a", None, "1")})


def test_category_values() -> None:
    assert Category("feature-flag") is Category.FEATURE_FLAG
    assert str(Category.CONFIGURATION) == "configuration"


def test_refresh_event_serializes_to_json() -> None:
    event = RefreshEvent(
        changes=(
            ChangedCategory(store="a", category=Category.CONFIGURATION),
            ChangedCategory(store="a", category=Category.FEATURE_FLAG),
            ChangedCategory(store="b", category=Category.CONFIGURATION),
        )
    )

    payload = json.loads(event.model_dump_json())

    assert payload["message"] == "Configuration Refresh Event"
    assert payload["changes"][1] == {"store": "a", "category": "feature-flag"}
    assert event.stores == ("a", "b")


def test_revision_keeps_whitespace_in_key_and_etag() -> None:
    revision = Revision(key=" /application/a ", etag='W/"abc" ')
    assert revision.key == " /application/a "
    assert revision.etag == 'W/"abc" '
    assert not RevisionSnapshot.of([revision]).same_tags(
        RevisionSnapshot.of([Revision(key=" /application/a ", etag='W/"abc"')])
    )

import sqlite3

import pytest

from mediarepo.media_attributes_store import MediaAttributesStore
from mediarepo.schema import create_schema
from mediarepo.types import PURPOSE_NONE, PURPOSE_PINNED, MediaAttributes, NotFoundError


@pytest.fixture
def store():
    connection = sqlite3.connect(":memory:")
    create_schema(connection)
    yield MediaAttributesStore(connection)
    connection.close()


def test_missing_attributes_raise(store):
    with pytest.raises(NotFoundError):
        store.get_attributes("example.org", "missing")


def test_defaulted_returns_none_purpose(store):
    attrs = store.get_attributes_defaulted("example.org", "missing")
    assert attrs == MediaAttributes(origin="example.org", media_id="missing", purpose=PURPOSE_NONE)


def test_upsert_then_get(store):
    store.upsert_purpose("example.org", "m1", PURPOSE_PINNED)
    attrs = store.get_attributes("example.org", "m1")
    assert attrs == MediaAttributes(origin="example.org", media_id="m1", purpose=PURPOSE_PINNED)


def test_upsert_overwrites(store):
    store.upsert_purpose("example.org", "m1", PURPOSE_PINNED)
    store.upsert_purpose("example.org", "m1", PURPOSE_NONE)
    assert store.get_attributes("example.org", "m1").purpose == PURPOSE_NONE


def test_defaulted_returns_stored_value(store):
    store.upsert_purpose("example.org", "m2", PURPOSE_PINNED)
    assert store.get_attributes_defaulted("example.org", "m2").purpose == PURPOSE_PINNED


def test_attributes_are_per_media(store):
    store.upsert_purpose("example.org", "m1", PURPOSE_PINNED)
    with pytest.raises(NotFoundError):
        store.get_attributes("other.example.org", "m1")
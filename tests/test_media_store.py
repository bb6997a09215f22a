import sqlite3

import pytest

from mediarepo.media_store import MediaStore
from mediarepo.schema import create_schema
from mediarepo.types import Media, NotFoundError


@pytest.fixture
def store():
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    yield MediaStore(conn)
    conn.close()


def _media(origin, media_id, **kwargs):
    defaults = dict(
        upload_name="file.png",
        content_type="image/png",
        user_id="@alice:example.com",
        sha256_hash="hash-" + media_id,
        size_bytes=10,
        datastore_id="ds1",
        location="aa/bb/cc",
        creation_ts=1000,
        quarantined=False,
    )
    defaults.update(kwargs)
    return Media(origin=origin, media_id=media_id, **defaults)


def _ids(media_list):
    return sorted(m.media_id for m in media_list)


def test_insert_and_get_round_trip(store):
    media = _media("example.com", "abc", quarantined=True)
    store.insert(media)
    assert store.get("example.com", "abc") == media


def test_get_missing_raises(store):
    with pytest.raises(NotFoundError):
        store.get("example.com", "missing")


def test_duplicate_insert_fails(store):
    store.insert(_media("example.com", "abc"))
    with pytest.raises(sqlite3.IntegrityError):
        store.insert(_media("example.com", "abc"))


def test_get_by_hash(store):
    store.insert(_media("example.com", "a", sha256_hash="shared"))
    store.insert(_media("other.example.com", "b", sha256_hash="shared"))
    store.insert(_media("example.com", "c", sha256_hash="different"))
    assert _ids(store.get_by_hash("shared")) == ["a", "b"]
    assert store.get_by_hash("nothing") == []


def test_get_origins(store):
    store.insert(_media("example.com", "a"))
    store.insert(_media("example.com", "b"))
    store.insert(_media("other.example.com", "c"))
    assert sorted(store.get_origins()) == ["example.com", "other.example.com"]


def test_delete(store):
    store.insert(_media("example.com", "a"))
    store.delete("example.com", "a")
    with pytest.raises(NotFoundError):
        store.get("example.com", "a")


def test_set_quarantined_and_queries(store):
    store.insert(_media("example.com", "a", sha256_hash="h1"))
    store.insert(_media("other.example.com", "b", sha256_hash="h2"))
    assert store.is_quarantined("h1") is False
    store.set_quarantined("example.com", "a", True)
    store.set_quarantined("other.example.com", "b", True)
    assert store.get("example.com", "a").quarantined is True
    assert store.is_quarantined("h1") is True
    assert _ids(store.get_all_quarantined_media()) == ["a", "b"]
    assert _ids(store.get_quarantined_media_for("example.com")) == ["a"]
    store.set_quarantined("example.com", "a", False)
    assert store.is_quarantined("h1") is False


def test_without_datastore_and_update(store):
    store.insert(_media("example.com", "a", datastore_id=""))
    store.insert(_media("example.com", "b", datastore_id="ds1"))
    missing = store.get_all_without_datastore()
    assert _ids(missing) == ["a"]
    item = missing[0]
    item.datastore_id = "ds2"
    item.location = "xx/yy/zz"
    store.update_datastore_and_location(item)
    fetched = store.get("example.com", "a")
    assert (fetched.datastore_id, fetched.location) == ("ds2", "xx/yy/zz")
    assert store.get_all_without_datastore() == []


def test_server_user_and_id_filters(store):
    store.insert(_media("example.com", "a", user_id="@alice:example.com"))
    store.insert(_media("example.com", "b", user_id="@bob:example.com"))
    store.insert(_media("other.example.com", "c", user_id="@alice:example.com"))
    assert _ids(store.get_all_media_for_server("example.com")) == ["a", "b"]
    assert _ids(
        store.get_all_media_for_server_users("example.com", ["@alice:example.com"])
    ) == ["a"]
    assert store.get_all_media_for_server_users("example.com", []) == []
    assert _ids(store.get_all_media_in_ids("example.com", ["b", "c"])) == ["b"]
    assert _ids(store.get_media_by_user("@alice:example.com")) == ["a", "c"]


def test_before_filters_are_inclusive(store):
    store.insert(_media("example.com", "a", creation_ts=100))
    store.insert(_media("example.com", "b", creation_ts=200))
    store.insert(_media("example.com", "c", creation_ts=300))
    assert _ids(store.get_media_by_user_before("@alice:example.com", 200)) == ["a", "b"]
    assert _ids(store.get_media_by_domain_before("example.com", 200)) == ["a", "b"]
    assert store.get_media_by_domain_before("other.example.com", 500) == []


def test_get_media_by_location(store):
    store.insert(_media("example.com", "a", datastore_id="ds1", location="p/q/r"))
    store.insert(_media("example.com", "b", datastore_id="ds2", location="p/q/r"))
    assert _ids(store.get_media_by_location("ds1", "p/q/r")) == ["a"]


def test_get_old_media(store):
    store.insert(_media("remote.example.com", "old", sha256_hash="h1", creation_ts=100))
    store.insert(_media("remote.example.com", "old2", sha256_hash="h2", creation_ts=100))
    store.insert(_media("remote.example.com", "new2", sha256_hash="h2", creation_ts=300))
    store.insert(_media("remote.example.com", "old3", sha256_hash="h3", creation_ts=100))
    store.insert(_media("example.com", "local3", sha256_hash="h3", creation_ts=100))
    result = store.get_old_media(["example.com"], 200)
    assert _ids(result) == ["old"]


def test_get_old_media_with_no_origins_matches_nothing(store):
    store.insert(_media("remote.example.com", "old", creation_ts=100))
    assert store.get_old_media([], 200) == []


def test_mxc_uri_of_stored_media(store):
    store.insert(_media("example.com", "abc"))
    assert store.get("example.com", "abc").mxc_uri() == "mxc://example.com/abc"
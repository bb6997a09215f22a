import sqlite3

import pytest

from mediarepo.export_store import ExportStore
from mediarepo.schema import create_schema
from mediarepo.types import ExportMetadata, ExportPart, NotFoundError


@pytest.fixture
def store():
    connection = sqlite3.connect(":memory:")
    create_schema(connection)
    yield ExportStore(connection)
    connection.close()


def _add_parts(store, export_id, count):
    for index in range(count):
        store.insert_export_part(export_id, index, 100 + index, f"part{index}.tgz", "ds1", f"loc/{index}")


def test_metadata_round_trip(store):
    store.insert_export("exp1", "@alice:example.org")
    assert store.get_export_metadata("exp1") == ExportMetadata(export_id="exp1", entity="@alice:example.org")


def test_missing_metadata_raises(store):
    with pytest.raises(NotFoundError):
        store.get_export_metadata("nope")


def test_duplicate_export_rejected(store):
    store.insert_export("exp1", "a")
    with pytest.raises(sqlite3.IntegrityError):
        store.insert_export("exp1", "b")


def test_parts_listed_in_index_order(store):
    store.insert_export("exp1", "a")
    store.insert_export_part("exp1", 2, 3, "c", "ds", "l2")
    store.insert_export_part("exp1", 0, 1, "a", "ds", "l0")
    store.insert_export_part("exp1", 1, 2, "b", "ds", "l1")
    parts = store.get_export_parts("exp1")
    assert [p.index for p in parts] == sorted(p.index for p in parts)
    assert [p.file_name for p in parts] == ["a", "b", "c"]


def test_get_single_part(store):
    store.insert_export("exp1", "a")
    store.insert_export_part("exp1", 0, 55, "file.tgz", "ds1", "where")
    assert store.get_export_part("exp1", 0) == ExportPart(
        export_id="exp1", index=0, file_name="file.tgz", size_bytes=55, datastore_id="ds1", location="where"
    )


def test_missing_part_raises(store):
    store.insert_export("exp1", "a")
    with pytest.raises(NotFoundError):
        store.get_export_part("exp1", 9)


def test_parts_of_unknown_export_empty(store):
    assert store.get_export_parts("unknown") == []


def test_delete_export_and_parts(store):
    store.insert_export("exp1", "a")
    store.insert_export("exp2", "b")
    _add_parts(store, "exp1", 3)
    _add_parts(store, "exp2", 2)
    store.delete_export_and_parts("exp1")
    assert store.get_export_parts("exp1") == []
    with pytest.raises(NotFoundError):
        store.get_export_metadata("exp1")
    assert len(store.get_export_parts("exp2")) == 2
    assert store.get_export_metadata("exp2").entity == "b"
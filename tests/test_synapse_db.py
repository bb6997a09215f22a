import sqlite3

import pytest

from mediarepo.synapse_db import LocalMedia, SynapseDatabase, open_synapse_database

TABLE = (
    "CREATE TABLE local_media_repository (media_id TEXT, media_type TEXT, media_length INTEGER, "
    "created_ts INTEGER, upload_name TEXT, user_id TEXT, url_cache TEXT);"
)


@pytest.fixture
def conn():
    c = sqlite3.connect(":memory:")
    c.execute(TABLE)
    yield c
    c.close()


def test_empty_table(conn):
    assert SynapseDatabase(conn).get_all_media() == []


def test_rows_are_read(conn):
    conn.execute(
        "INSERT INTO local_media_repository VALUES (?, ?, ?, ?, ?, ?, ?)",
        ("abc", "image/png", 42, 1000, "cat.png", "@alice:example.org", None),
    )
    conn.execute(
        "INSERT INTO local_media_repository VALUES (?, ?, ?, ?, ?, ?, ?)",
        ("def", None, None, None, None, None, "https://example.com/"),
    )
    media = SynapseDatabase(conn).get_all_media()
    assert media[0] == LocalMedia("abc", "image/png", 42, 1000, "cat.png", "@alice:example.org", "")
    assert media[1] == LocalMedia(media_id="def", url_cache="https://example.com/")


def test_open_from_file(tmp_path):
    path = tmp_path / "homeserver.db"
    with sqlite3.connect(path) as c:
        c.execute(TABLE)
        c.execute(
            "INSERT INTO local_media_repository VALUES (?, ?, ?, ?, ?, ?, ?)",
            ("xyz", "text/plain", 3, 5, "a.txt", "@bob:example.org", ""),
        )
    db = open_synapse_database(path)
    assert [m.media_id for m in db.get_all_media()] == ["xyz"]


def test_missing_table_raises(tmp_path):
    db = open_synapse_database(tmp_path / "empty.db")
    with pytest.raises(sqlite3.OperationalError):
        db.get_all_media()
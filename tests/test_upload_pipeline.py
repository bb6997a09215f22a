import hashlib
import io
import sqlite3

import pytest

from mediarepo.media_store import MediaStore
from mediarepo.schema import create_schema
from mediarepo.types import Media
from mediarepo.upload_pipeline import (
    MediaQuarantinedError,
    buffer_stream,
    check_quarantine_status,
    generate_media_id,
    hash_stream,
    limit_stream_length,
)


class FakeReservations:
    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = []

    def is_reserved(self, origin, media_id):
        self.calls.append((origin, media_id))
        return self.answers.pop(0) if self.answers else False


def test_limit_caps_stream():
    limited = limit_stream_length(io.BytesIO(b"abcdef"), 3)
    assert limited.read() == b"abc"


def test_limit_zero_returns_same_stream():
    stream = io.BytesIO(b"abcdef")
    assert limit_stream_length(stream, 0) is stream


def test_limit_larger_than_content():
    limited = limit_stream_length(io.BytesIO(b"abc"), 100)
    assert buffer_stream(limited) == b"abc"


def test_buffer_stream_reads_everything():
    data = b"x" * 200_000
    assert buffer_stream(io.BytesIO(data)) == data


def test_hash_of_empty_stream():
    assert hash_stream(io.BytesIO(b"")) == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_hash_matches_hashlib_for_large_input():
    data = bytes(range(256)) * 1000
    assert hash_stream(io.BytesIO(data)) == hashlib.sha256(data).hexdigest()


@pytest.fixture
def media_store():
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    yield MediaStore(conn)
    conn.close()


def test_quarantined_hash_raises(media_store):
    media_store.insert(Media("example.org", "m1", sha256_hash="h1", quarantined=True))
    with pytest.raises(MediaQuarantinedError):
        check_quarantine_status(media_store, "h1")


def test_clean_hash_passes(media_store):
    media_store.insert(Media("example.org", "m1", sha256_hash="h1"))
    assert check_quarantine_status(media_store, "h1") is None
    assert media_store.is_quarantined("h1") is False


def test_generate_media_id_shape():
    store = FakeReservations([])
    media_id = generate_media_id(store, "example.org")
    assert len(media_id) == 40
    assert all(c in "0123456789abcdef" for c in media_id)
    assert store.calls == [("example.org", media_id)]


def test_generate_media_id_skips_reserved():
    store = FakeReservations([True, False])
    media_id = generate_media_id(store, "example.org")
    assert len(store.calls) == 2
    assert store.calls[-1][1] == media_id


def test_generate_media_id_gives_up():
    store = FakeReservations([True] * 20)
    with pytest.raises(RuntimeError):
        generate_media_id(store, "example.org")
    assert len(store.calls) == 10


def test_generated_ids_are_distinct():
    store = FakeReservations([])
    ids = {generate_media_id(store, "example.org") for _ in range(20)}
    assert len(ids) == 20
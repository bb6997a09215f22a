"""Queries over the table of generated thumbnails."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence

from .types import NotFoundError, Thumbnail

_COLUMNS = (
    "origin, media_id, width, height, method, animated, content_type, "
    "size_bytes, datastore_id, location, creation_ts, sha256_hash"
)
_SELECT = f"SELECT {_COLUMNS} FROM thumbnails"
_KEY = "origin = ? AND media_id = ? AND width = ? AND height = ? AND method = ? AND animated = ?"

_SELECT_THUMBNAIL = f"{_SELECT} WHERE {_KEY};"
_INSERT_THUMBNAIL = (
    f"INSERT INTO thumbnails ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);"
)
_UPDATE_HASH = f"UPDATE thumbnails SET sha256_hash = ? WHERE {_KEY};"
_SELECT_WITHOUT_HASH = f"{_SELECT} WHERE sha256_hash IS NULL OR sha256_hash = '';"
_SELECT_WITHOUT_DATASTORE = f"{_SELECT} WHERE datastore_id IS NULL OR datastore_id = '';"
_UPDATE_DATASTORE_AND_LOCATION = (
    f"UPDATE thumbnails SET location = ?, datastore_id = ? WHERE {_KEY};"
)
_SELECT_FOR_MEDIA = f"{_SELECT} WHERE origin = ? AND media_id = ?;"
_DELETE_FOR_MEDIA = "DELETE FROM thumbnails WHERE origin = ? AND media_id = ?;"
_SELECT_CREATED_BEFORE = f"{_SELECT} WHERE creation_ts < ?;"
_DELETE_WITH_HASH = "DELETE FROM thumbnails WHERE sha256_hash = ?;"


def _thumbnail_from_row(row: tuple) -> Thumbnail:
    (
        origin,
        media_id,
        width,
        height,
        method,
        animated,
        content_type,
        size_bytes,
        datastore_id,
        location,
        creation_ts,
        sha256_hash,
    ) = row
    return Thumbnail(
        origin=origin,
        media_id=media_id,
        width=width,
        height=height,
        method=method,
        animated=bool(animated),
        content_type=content_type or "",
        size_bytes=size_bytes or 0,
        datastore_id=datastore_id or "",
        location=location or "",
        creation_ts=creation_ts or 0,
        sha256_hash=sha256_hash or "",
    )


def _key_of(thumbnail: Thumbnail) -> tuple:
    return (
        thumbnail.origin,
        thumbnail.media_id,
        thumbnail.width,
        thumbnail.height,
        thumbnail.method,
        int(thumbnail.animated),
    )


class ThumbnailStore:
    """Reads and writes thumbnail records."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _query(self, sql: str, params: Sequence = ()) -> list[Thumbnail]:
        return [_thumbnail_from_row(row) for row in self._conn.execute(sql, tuple(params))]

    def insert(self, thumbnail: Thumbnail) -> None:
        with self._conn:
            self._conn.execute(
                _INSERT_THUMBNAIL,
                (
                    *_key_of(thumbnail),
                    thumbnail.content_type,
                    thumbnail.size_bytes,
                    thumbnail.datastore_id,
                    thumbnail.location,
                    thumbnail.creation_ts,
                    thumbnail.sha256_hash,
                ),
            )

    def get(
        self,
        origin: str,
        media_id: str,
        width: int,
        height: int,
        method: str,
        animated: bool,
    ) -> Thumbnail:
        row = self._conn.execute(
            _SELECT_THUMBNAIL, (origin, media_id, width, height, method, int(animated))
        ).fetchone()
        if row is None:
            raise NotFoundError(
                f"no {method} thumbnail {width}x{height} for {origin}/{media_id}"
            )
        return _thumbnail_from_row(row)

    def update_hash(self, thumbnail: Thumbnail) -> None:
        with self._conn:
            self._conn.execute(_UPDATE_HASH, (thumbnail.sha256_hash, *_key_of(thumbnail)))

    def update_datastore_and_location(self, thumbnail: Thumbnail) -> None:
        with self._conn:
            self._conn.execute(
                _UPDATE_DATASTORE_AND_LOCATION,
                (thumbnail.location, thumbnail.datastore_id, *_key_of(thumbnail)),
            )

    def get_all_without_hash(self) -> list[Thumbnail]:
        return self._query(_SELECT_WITHOUT_HASH)

    def get_all_without_datastore(self) -> list[Thumbnail]:
        return self._query(_SELECT_WITHOUT_DATASTORE)

    def get_all_for_media(self, origin: str, media_id: str) -> list[Thumbnail]:
        return self._query(_SELECT_FOR_MEDIA, (origin, media_id))

    def delete_all_for_media(self, origin: str, media_id: str) -> None:
        with self._conn:
            self._conn.execute(_DELETE_FOR_MEDIA, (origin, media_id))

    def get_old_thumbnails(self, before_ts: int) -> list[Thumbnail]:
        """Thumbnails created strictly before ``before_ts``."""
        return self._query(_SELECT_CREATED_BEFORE, (before_ts,))

    def delete_with_hash(self, sha256_hash: str) -> None:
        with self._conn:
            self._conn.execute(_DELETE_WITH_HASH, (sha256_hash,))
"""Metadata about stored content: access times, sizes, tasks, reservations."""

from __future__ import annotations

import json
import sqlite3
import time
from typing import Any, Mapping

from .types import BackgroundTask, MinimalMediaMetadata, NotFoundError, UserStats

_SELECT_SIZE_OF_DATASTORE = (
    "SELECT COALESCE(SUM(size_bytes), 0) + COALESCE("
    "(SELECT SUM(size_bytes) FROM thumbnails WHERE datastore_id = :ds), 0) "
    "AS size_total FROM media WHERE datastore_id = :ds;"
)
_UPSERT_LAST_ACCESSED = (
    "INSERT INTO last_access (sha256_hash, last_access_ts) VALUES (?, ?) "
    "ON CONFLICT (sha256_hash) DO UPDATE SET last_access_ts = excluded.last_access_ts;"
)
_MINIMAL_COLUMNS = (
    "m.sha256_hash, m.size_bytes, m.datastore_id, m.location, m.creation_ts, a.last_access_ts"
)
_SELECT_MEDIA_LAST_ACCESSED_IN_DATASTORE = (
    f"SELECT {_MINIMAL_COLUMNS} FROM media AS m "
    "JOIN last_access AS a ON m.sha256_hash = a.sha256_hash "
    "WHERE a.last_access_ts < ? AND m.datastore_id = ?;"
)
_SELECT_THUMBNAILS_LAST_ACCESSED_IN_DATASTORE = (
    f"SELECT {_MINIMAL_COLUMNS} FROM thumbnails AS m "
    "JOIN last_access AS a ON m.sha256_hash = a.sha256_hash "
    "WHERE a.last_access_ts < ? AND m.datastore_id = ?;"
)
_SELECT_MEDIA_LAST_ACCESSED = (
    f"SELECT {_MINIMAL_COLUMNS} FROM media AS m "
    "JOIN last_access AS a ON m.sha256_hash = a.sha256_hash "
    "WHERE a.last_access_ts < ?;"
)
_CHANGE_DATASTORE_OF_MEDIA_HASH = (
    "UPDATE media SET datastore_id = ?, location = ? WHERE sha256_hash = ?;"
)
_CHANGE_DATASTORE_OF_THUMBNAIL_HASH = (
    "UPDATE thumbnails SET datastore_id = ?, location = ? WHERE sha256_hash = ?;"
)
_SELECT_UPLOAD_COUNTS_FOR_SERVER = (
    "SELECT COALESCE((SELECT COUNT(origin) FROM media WHERE origin = :o), 0), "
    "COALESCE((SELECT COUNT(origin) FROM thumbnails WHERE origin = :o), 0);"
)
_SELECT_UPLOAD_SIZES_FOR_SERVER = (
    "SELECT COALESCE((SELECT SUM(size_bytes) FROM media WHERE origin = :o), 0), "
    "COALESCE((SELECT SUM(size_bytes) FROM thumbnails WHERE origin = :o), 0);"
)
_SELECT_USERS_FOR_SERVER = (
    "SELECT DISTINCT user_id FROM media "
    "WHERE origin = ? AND user_id IS NOT NULL AND LENGTH(user_id) > 0;"
)
_INSERT_BACKGROUND_TASK = (
    "INSERT INTO background_tasks (task, params, start_ts) VALUES (?, ?, ?);"
)
_SELECT_BACKGROUND_TASK = (
    "SELECT id, task, params, start_ts, end_ts FROM background_tasks WHERE id = ?;"
)
_UPDATE_BACKGROUND_TASK = "UPDATE background_tasks SET end_ts = ? WHERE id = ?;"
_SELECT_ALL_BACKGROUND_TASKS = (
    "SELECT id, task, params, start_ts, end_ts FROM background_tasks ORDER BY id;"
)
_INSERT_RESERVATION = "INSERT INTO reserved_media (origin, media_id, reason) VALUES (?, ?, ?);"
_SELECT_RESERVATION = (
    "SELECT origin, media_id, reason FROM reserved_media WHERE origin = ? AND media_id = ?;"
)
_INSERT_BLURHASH = "INSERT INTO blurhashes (sha256_hash, blurhash) VALUES (?, ?);"
_SELECT_BLURHASH = "SELECT blurhash FROM blurhashes WHERE sha256_hash = ?;"
_SELECT_USER_STATS = "SELECT user_id, uploaded_bytes FROM user_stats WHERE user_id = ?;"


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


def _minimal_from_row(row: tuple) -> MinimalMediaMetadata:
    sha256_hash, size_bytes, datastore_id, location, creation_ts, last_access_ts = row
    return MinimalMediaMetadata(
        size_bytes=size_bytes or 0,
        sha256_hash=sha256_hash or "",
        location=location or "",
        creation_ts=creation_ts or 0,
        last_access_ts=last_access_ts or 0,
        datastore_id=datastore_id or "",
    )


def _task_from_row(row: tuple) -> BackgroundTask:
    task_id, name, params, start_ts, end_ts = row
    return BackgroundTask(
        id=task_id,
        name=name,
        params=json.loads(params),
        start_ts=start_ts,
        end_ts=end_ts if end_ts is not None else 0,
    )


class MetadataStore:
    """Reads and writes metadata that spans media and thumbnails."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert_last_access(self, sha256_hash: str, timestamp: int) -> None:
        with self._conn:
            self._conn.execute(_UPSERT_LAST_ACCESSED, (sha256_hash, timestamp))

    def change_datastore_of_hash(self, datastore_id: str, location: str, sha256_hash: str) -> None:
        """Point every media and thumbnail with this hash at a new datastore location."""
        with self._conn:
            self._conn.execute(
                _CHANGE_DATASTORE_OF_MEDIA_HASH, (datastore_id, location, sha256_hash)
            )
            self._conn.execute(
                _CHANGE_DATASTORE_OF_THUMBNAIL_HASH, (datastore_id, location, sha256_hash)
            )

    def get_estimated_size_of_datastore(self, datastore_id: str) -> int:
        """Total bytes of media and thumbnails held by the datastore."""
        row = self._conn.execute(_SELECT_SIZE_OF_DATASTORE, {"ds": datastore_id}).fetchone()
        return row[0]

    def get_old_media(self, before_ts: int) -> list[MinimalMediaMetadata]:
        return [
            _minimal_from_row(row)
            for row in self._conn.execute(_SELECT_MEDIA_LAST_ACCESSED, (before_ts,))
        ]

    def get_old_media_in_datastore(
        self, datastore_id: str, before_ts: int
    ) -> list[MinimalMediaMetadata]:
        return [
            _minimal_from_row(row)
            for row in self._conn.execute(
                _SELECT_MEDIA_LAST_ACCESSED_IN_DATASTORE, (before_ts, datastore_id)
            )
        ]

    def get_old_thumbnails_in_datastore(
        self, datastore_id: str, before_ts: int
    ) -> list[MinimalMediaMetadata]:
        return [
            _minimal_from_row(row)
            for row in self._conn.execute(
                _SELECT_THUMBNAILS_LAST_ACCESSED_IN_DATASTORE, (before_ts, datastore_id)
            )
        ]

    def get_users_for_server(self, server_name: str) -> list[str]:
        return [row[0] for row in self._conn.execute(_SELECT_USERS_FOR_SERVER, (server_name,))]

    def get_byte_usage_for_server(self, server_name: str) -> tuple[int, int]:
        """Bytes used by (media, thumbnails) from this origin."""
        media, thumbs = self._conn.execute(
            _SELECT_UPLOAD_SIZES_FOR_SERVER, {"o": server_name}
        ).fetchone()
        return media, thumbs

    def get_count_usage_for_server(self, server_name: str) -> tuple[int, int]:
        """Number of (media, thumbnails) from this origin."""
        media, thumbs = self._conn.execute(
            _SELECT_UPLOAD_COUNTS_FOR_SERVER, {"o": server_name}
        ).fetchone()
        return media, thumbs

    def create_background_task(self, name: str, params: Mapping[str, Any]) -> BackgroundTask:
        now = _now_millis()
        encoded = json.dumps(dict(params))
        with self._conn:
            cursor = self._conn.execute(_INSERT_BACKGROUND_TASK, (name, encoded, now))
        return BackgroundTask(
            id=cursor.lastrowid, name=name, params=dict(params), start_ts=now, end_ts=0
        )

    def finished_background_task(self, task_id: int) -> None:
        with self._conn:
            self._conn.execute(_UPDATE_BACKGROUND_TASK, (_now_millis(), task_id))

    def get_background_task(self, task_id: int) -> BackgroundTask:
        row = self._conn.execute(_SELECT_BACKGROUND_TASK, (task_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"no background task {task_id}")
        return _task_from_row(row)

    def get_all_background_tasks(self) -> list[BackgroundTask]:
        return [_task_from_row(row) for row in self._conn.execute(_SELECT_ALL_BACKGROUND_TASKS)]

    def reserve_media_id(self, origin: str, media_id: str, reason: str) -> None:
        with self._conn:
            self._conn.execute(_INSERT_RESERVATION, (origin, media_id, reason))

    def is_reserved(self, origin: str, media_id: str) -> bool:
        return self._conn.execute(_SELECT_RESERVATION, (origin, media_id)).fetchone() is not None

    def insert_blurhash(self, sha256_hash: str, blurhash: str) -> None:
        with self._conn:
            self._conn.execute(_INSERT_BLURHASH, (sha256_hash, blurhash))

    def get_blurhash(self, sha256_hash: str) -> str:
        """The stored blurhash, or an empty string when there is none."""
        row = self._conn.execute(_SELECT_BLURHASH, (sha256_hash,)).fetchone()
        return row[0] if row is not None else ""

    def get_user_stats(self, user_id: str) -> UserStats:
        row = self._conn.execute(_SELECT_USER_STATS, (user_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"no stats for {user_id}")
        return UserStats(user_id=row[0], uploaded_bytes=row[1])
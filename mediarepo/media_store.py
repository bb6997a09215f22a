"""Queries over the table of stored media."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence

from .types import Media, NotFoundError

_COLUMNS = (
    "origin, media_id, upload_name, content_type, user_id, sha256_hash, "
    "size_bytes, datastore_id, location, creation_ts, quarantined"
)
_ALIASED_COLUMNS = ", ".join(f"m.{c.strip()}" for c in _COLUMNS.split(","))

_SELECT = f"SELECT {_COLUMNS} FROM media"
_SELECT_MEDIA = f"{_SELECT} WHERE origin = ? AND media_id = ?;"
_SELECT_BY_HASH = f"{_SELECT} WHERE sha256_hash = ?;"
_INSERT_MEDIA = f"INSERT INTO media ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);"
_SELECT_ORIGINS = "SELECT DISTINCT origin FROM media;"
_DELETE_MEDIA = "DELETE FROM media WHERE origin = ? AND media_id = ?;"
_UPDATE_QUARANTINED = "UPDATE media SET quarantined = ? WHERE origin = ? AND media_id = ?;"
_SELECT_WITHOUT_DATASTORE = f"{_SELECT} WHERE datastore_id IS NULL OR datastore_id = '';"
_UPDATE_DATASTORE_AND_LOCATION = (
    "UPDATE media SET location = ?, datastore_id = ? WHERE origin = ? AND media_id = ?;"
)
_SELECT_FOR_SERVER = f"{_SELECT} WHERE origin = ?;"
_SELECT_QUARANTINED = f"{_SELECT} WHERE quarantined = 1;"
_SELECT_SERVER_QUARANTINED = f"{_SELECT} WHERE quarantined = 1 AND origin = ?;"
_SELECT_BY_USER = f"{_SELECT} WHERE user_id = ?;"
_SELECT_BY_USER_BEFORE = f"{_SELECT} WHERE user_id = ? AND creation_ts <= ?;"
_SELECT_BY_DOMAIN_BEFORE = f"{_SELECT} WHERE origin = ? AND creation_ts <= ?;"
_SELECT_BY_LOCATION = f"{_SELECT} WHERE datastore_id = ? AND location = ?;"
_SELECT_IF_QUARANTINED = "SELECT 1 FROM media WHERE sha256_hash = ? AND quarantined = ? LIMIT 1;"


def _media_from_row(row: tuple) -> Media:
    (
        origin,
        media_id,
        upload_name,
        content_type,
        user_id,
        sha256_hash,
        size_bytes,
        datastore_id,
        location,
        creation_ts,
        quarantined,
    ) = row
    return Media(
        origin=origin,
        media_id=media_id,
        upload_name=upload_name or "",
        content_type=content_type or "",
        user_id=user_id or "",
        sha256_hash=sha256_hash or "",
        size_bytes=size_bytes or 0,
        datastore_id=datastore_id or "",
        location=location or "",
        creation_ts=creation_ts or 0,
        quarantined=bool(quarantined),
    )


def _equals_any(column: str, count: int) -> str:
    """SQL true when ``column`` equals any of ``count`` parameters."""
    if count == 0:
        return "0"
    return f"{column} IN ({', '.join('?' * count)})"


def _differs_from_any(column: str, count: int) -> str:
    """SQL true when ``column`` differs from at least one of ``count`` parameters."""
    if count == 0:
        return "0"
    return "(" + " OR ".join(f"{column} <> ?" for _ in range(count)) + ")"


class MediaStore:
    """Reads and writes media records."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _query(self, sql: str, params: Sequence = ()) -> list[Media]:
        return [_media_from_row(row) for row in self._conn.execute(sql, tuple(params))]

    def insert(self, media: Media) -> None:
        with self._conn:
            self._conn.execute(
                _INSERT_MEDIA,
                (
                    media.origin,
                    media.media_id,
                    media.upload_name,
                    media.content_type,
                    media.user_id,
                    media.sha256_hash,
                    media.size_bytes,
                    media.datastore_id,
                    media.location,
                    media.creation_ts,
                    int(media.quarantined),
                ),
            )

    def get_by_hash(self, sha256_hash: str) -> list[Media]:
        return self._query(_SELECT_BY_HASH, (sha256_hash,))

    def get(self, origin: str, media_id: str) -> Media:
        row = self._conn.execute(_SELECT_MEDIA, (origin, media_id)).fetchone()
        if row is None:
            raise NotFoundError(f"no media {origin}/{media_id}")
        return _media_from_row(row)

    def get_old_media(self, except_origins: Sequence[str], before_ts: int) -> list[Media]:
        """Media created before ``before_ts`` whose content is not held anywhere newer
        or by any of ``except_origins``."""
        origins = list(except_origins)
        sql = (
            f"SELECT {_ALIASED_COLUMNS} FROM media AS m "
            f"WHERE {_differs_from_any('m.origin', len(origins))} "
            "AND m.creation_ts < ? "
            "AND (SELECT COUNT(*) FROM media AS d "
            "WHERE d.sha256_hash = m.sha256_hash AND d.creation_ts >= ?) = 0 "
            "AND (SELECT COUNT(*) FROM media AS d "
            f"WHERE d.sha256_hash = m.sha256_hash AND {_equals_any('d.origin', len(origins))}) = 0;"
        )
        return self._query(sql, [*origins, before_ts, before_ts, *origins])

    def get_origins(self) -> list[str]:
        return [row[0] for row in self._conn.execute(_SELECT_ORIGINS)]

    def delete(self, origin: str, media_id: str) -> None:
        with self._conn:
            self._conn.execute(_DELETE_MEDIA, (origin, media_id))

    def set_quarantined(self, origin: str, media_id: str, is_quarantined: bool) -> None:
        with self._conn:
            self._conn.execute(_UPDATE_QUARANTINED, (int(is_quarantined), origin, media_id))

    def update_datastore_and_location(self, media: Media) -> None:
        with self._conn:
            self._conn.execute(
                _UPDATE_DATASTORE_AND_LOCATION,
                (media.location, media.datastore_id, media.origin, media.media_id),
            )

    def get_all_without_datastore(self) -> list[Media]:
        return self._query(_SELECT_WITHOUT_DATASTORE)

    def get_all_media_for_server(self, server_name: str) -> list[Media]:
        return self._query(_SELECT_FOR_SERVER, (server_name,))

    def get_all_media_for_server_users(
        self, server_name: str, user_ids: Sequence[str]
    ) -> list[Media]:
        users = list(user_ids)
        sql = f"{_SELECT} WHERE origin = ? AND {_equals_any('user_id', len(users))};"
        return self._query(sql, [server_name, *users])

    def get_all_media_in_ids(self, server_name: str, media_ids: Sequence[str]) -> list[Media]:
        ids = list(media_ids)
        sql = f"{_SELECT} WHERE origin = ? AND {_equals_any('media_id', len(ids))};"
        return self._query(sql, [server_name, *ids])

    def get_all_quarantined_media(self) -> list[Media]:
        return self._query(_SELECT_QUARANTINED)

    def get_quarantined_media_for(self, server_name: str) -> list[Media]:
        return self._query(_SELECT_SERVER_QUARANTINED, (server_name,))

    def get_media_by_user(self, user_id: str) -> list[Media]:
        return self._query(_SELECT_BY_USER, (user_id,))

    def get_media_by_user_before(self, user_id: str, before_ts: int) -> list[Media]:
        return self._query(_SELECT_BY_USER_BEFORE, (user_id, before_ts))

    def get_media_by_domain_before(self, server_name: str, before_ts: int) -> list[Media]:
        return self._query(_SELECT_BY_DOMAIN_BEFORE, (server_name, before_ts))

    def get_media_by_location(self, datastore_id: str, location: str) -> list[Media]:
        return self._query(_SELECT_BY_LOCATION, (datastore_id, location))

    def is_quarantined(self, sha256_hash: str) -> bool:
        """Whether any media with this hash is quarantined."""
        row = self._conn.execute(_SELECT_IF_QUARANTINED, (sha256_hash, 1)).fetchone()
        return row is not None
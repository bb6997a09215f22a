"""Cache of generated URL previews, bucketed by hour."""

from __future__ import annotations

import sqlite3
import time

from .types import CachedUrlPreview, NotFoundError, UrlPreview

_BUCKET_MS = 3_600_000

_COLUMNS = (
    "url, error_code, bucket_ts, site_url, site_name, resource_type, description, title, "
    "image_mxc, image_type, image_size, image_width, image_height, language_header"
)

_SELECT_PREVIEW = (
    f"SELECT {_COLUMNS} FROM url_previews "
    "WHERE url = ? AND bucket_ts = ? AND language_header = ?;"
)
_INSERT_PREVIEW = (
    f"INSERT INTO url_previews ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);"
)
_DELETE_OLDER_THAN = "DELETE FROM url_previews WHERE bucket_ts <= ?;"


def get_bucket_ts(ts: int) -> int:
    """Round a millisecond timestamp toward zero onto an hour boundary."""
    buckets = abs(ts) // _BUCKET_MS
    return (buckets if ts >= 0 else -buckets) * _BUCKET_MS


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class UrlStore:
    """Reads and writes cached URL previews."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_preview(self, url: str, ts: int, language_header: str) -> CachedUrlPreview:
        row = self._conn.execute(
            _SELECT_PREVIEW, (url, get_bucket_ts(ts), language_header)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"no preview for {url}")
        (
            search_url,
            error_code,
            fetched_ts,
            site_url,
            site_name,
            resource_type,
            description,
            title,
            image_mxc,
            image_type,
            image_size,
            image_width,
            image_height,
            row_language,
        ) = row
        preview = UrlPreview(
            url=site_url,
            site_name=site_name,
            type=resource_type,
            description=description,
            title=title,
            image_mxc=image_mxc,
            image_type=image_type,
            image_size=image_size,
            image_width=image_width,
            image_height=image_height,
            language_header=row_language,
        )
        return CachedUrlPreview(
            preview=preview,
            search_url=search_url,
            error_code=error_code,
            fetched_ts=fetched_ts,
        )

    def insert_preview(self, record: CachedUrlPreview) -> None:
        preview = record.preview
        with self._conn:
            self._conn.execute(
                _INSERT_PREVIEW,
                (
                    record.search_url,
                    record.error_code,
                    get_bucket_ts(record.fetched_ts),
                    preview.url,
                    preview.site_name,
                    preview.type,
                    preview.description,
                    preview.title,
                    preview.image_mxc,
                    preview.image_type,
                    preview.image_size,
                    preview.image_width,
                    preview.image_height,
                    preview.language_header,
                ),
            )

    def insert_preview_error(self, url: str, error_code: str) -> None:
        self.insert_preview(
            CachedUrlPreview(
                preview=UrlPreview(),
                search_url=url,
                error_code=error_code,
                fetched_ts=_now_millis(),
            )
        )

    def delete_older_than(self, before_ts: int) -> None:
        with self._conn:
            self._conn.execute(_DELETE_OLDER_THAN, (before_ts,))
"""Database schema for the media repository's SQLite store."""

from __future__ import annotations

import sqlite3

_SCHEMA = """
CREATE TABLE IF NOT EXISTS media (
    origin TEXT NOT NULL,
    media_id TEXT NOT NULL,
    upload_name TEXT NOT NULL DEFAULT '',
    content_type TEXT NOT NULL DEFAULT '',
    user_id TEXT NOT NULL DEFAULT '',
    sha256_hash TEXT NOT NULL DEFAULT '',
    size_bytes INTEGER NOT NULL DEFAULT 0,
    datastore_id TEXT,
    location TEXT NOT NULL DEFAULT '',
    creation_ts INTEGER NOT NULL DEFAULT 0,
    quarantined INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (origin, media_id)
);
CREATE INDEX IF NOT EXISTS media_sha256_hash ON media (sha256_hash);
CREATE INDEX IF NOT EXISTS media_user_id ON media (user_id);

CREATE TABLE IF NOT EXISTS thumbnails (
    origin TEXT NOT NULL,
    media_id TEXT NOT NULL,
    width INTEGER NOT NULL,
    height INTEGER NOT NULL,
    method TEXT NOT NULL,
    animated INTEGER NOT NULL DEFAULT 0,
    content_type TEXT NOT NULL DEFAULT '',
    size_bytes INTEGER NOT NULL DEFAULT 0,
    datastore_id TEXT,
    location TEXT NOT NULL DEFAULT '',
    creation_ts INTEGER NOT NULL DEFAULT 0,
    sha256_hash TEXT,
    PRIMARY KEY (origin, media_id, width, height, method, animated)
);
CREATE INDEX IF NOT EXISTS thumbnails_sha256_hash ON thumbnails (sha256_hash);

CREATE TABLE IF NOT EXISTS datastores (
    datastore_id TEXT PRIMARY KEY NOT NULL,
    ds_type TEXT NOT NULL,
    uri TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS url_previews (
    url TEXT NOT NULL,
    error_code TEXT NOT NULL DEFAULT '',
    bucket_ts INTEGER NOT NULL,
    site_url TEXT NOT NULL DEFAULT '',
    site_name TEXT NOT NULL DEFAULT '',
    resource_type TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL DEFAULT '',
    image_mxc TEXT NOT NULL DEFAULT '',
    image_type TEXT NOT NULL DEFAULT '',
    image_size INTEGER NOT NULL DEFAULT 0,
    image_width INTEGER NOT NULL DEFAULT 0,
    image_height INTEGER NOT NULL DEFAULT 0,
    language_header TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (url, bucket_ts, language_header)
);

CREATE TABLE IF NOT EXISTS last_access (
    sha256_hash TEXT PRIMARY KEY NOT NULL,
    last_access_ts INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS background_tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    task TEXT NOT NULL,
    params TEXT NOT NULL,
    start_ts INTEGER NOT NULL,
    end_ts INTEGER
);

CREATE TABLE IF NOT EXISTS reserved_media (
    origin TEXT NOT NULL,
    media_id TEXT NOT NULL,
    reason TEXT NOT NULL,
    PRIMARY KEY (origin, media_id)
);

CREATE TABLE IF NOT EXISTS blurhashes (
    sha256_hash TEXT PRIMARY KEY NOT NULL,
    blurhash TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_stats (
    user_id TEXT PRIMARY KEY NOT NULL,
    uploaded_bytes INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS exports (
    export_id TEXT PRIMARY KEY NOT NULL,
    entity TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS export_parts (
    export_id TEXT NOT NULL,
    "index" INTEGER NOT NULL,
    size_bytes INTEGER NOT NULL,
    file_name TEXT NOT NULL,
    datastore_id TEXT NOT NULL,
    location TEXT NOT NULL,
    PRIMARY KEY (export_id, "index")
);

CREATE TABLE IF NOT EXISTS media_attributes (
    origin TEXT NOT NULL,
    media_id TEXT NOT NULL,
    purpose TEXT NOT NULL,
    PRIMARY KEY (origin, media_id)
);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create every table the stores use, leaving existing tables alone."""
    conn.executescript(_SCHEMA)
    conn.commit()
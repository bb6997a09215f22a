"""Read-only access to a Synapse homeserver's local media table."""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass

_SELECT_LOCAL_MEDIA = (
    "SELECT media_id, media_type, media_length, created_ts, upload_name, user_id, url_cache "
    "FROM local_media_repository;"
)


@dataclass
class LocalMedia:
    media_id: str = ""
    content_type: str = ""
    size_bytes: int = 0
    created_ts: int = 0
    upload_name: str = ""
    user_id: str = ""
    url_cache: str = ""


class SynapseDatabase:
    """Lists the media a Synapse server has stored locally."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_all_media(self) -> list[LocalMedia]:
        return [
            LocalMedia(
                media_id=media_id or "",
                content_type=content_type or "",
                size_bytes=size_bytes or 0,
                created_ts=created_ts or 0,
                upload_name=upload_name or "",
                user_id=user_id or "",
                url_cache=url_cache or "",
            )
            for (
                media_id,
                content_type,
                size_bytes,
                created_ts,
                upload_name,
                user_id,
                url_cache,
            ) in self._conn.execute(_SELECT_LOCAL_MEDIA)
        ]


def open_synapse_database(path: str | os.PathLike) -> SynapseDatabase:
    """Open a Synapse SQLite database file."""
    return SynapseDatabase(sqlite3.connect(os.fspath(path)))
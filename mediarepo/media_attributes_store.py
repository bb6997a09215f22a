"""Per-media attributes such as the media's purpose."""

from __future__ import annotations

import sqlite3

from .types import PURPOSE_NONE, MediaAttributes, NotFoundError

_SELECT_ATTRIBUTES = (
    "SELECT origin, media_id, purpose FROM media_attributes WHERE origin = ? AND media_id = ?;"
)
_UPSERT_PURPOSE = (
    "INSERT INTO media_attributes (origin, media_id, purpose) VALUES (?, ?, ?) "
    "ON CONFLICT (origin, media_id) DO UPDATE SET purpose = excluded.purpose;"
)


class MediaAttributesStore:
    """Reads and writes media attributes."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_attributes(self, origin: str, media_id: str) -> MediaAttributes:
        row = self._conn.execute(_SELECT_ATTRIBUTES, (origin, media_id)).fetchone()
        if row is None:
            raise NotFoundError(f"no attributes for {origin}/{media_id}")
        return MediaAttributes(origin=row[0], media_id=row[1], purpose=row[2])

    def get_attributes_defaulted(self, origin: str, media_id: str) -> MediaAttributes:
        """Like get_attributes, but returns purpose "none" when nothing is stored."""
        try:
            return self.get_attributes(origin, media_id)
        except NotFoundError:
            return MediaAttributes(origin=origin, media_id=media_id, purpose=PURPOSE_NONE)

    def upsert_purpose(self, origin: str, media_id: str, purpose: str) -> None:
        with self._conn:
            self._conn.execute(_UPSERT_PURPOSE, (origin, media_id, purpose))
"""The media repository database and the tasks run on it at startup."""

from __future__ import annotations

import logging
import os
import posixpath
import sqlite3

from .export_store import ExportStore
from .media_attributes_store import MediaAttributesStore
from .media_store import MediaStore
from .metadata_store import MetadataStore
from .registry import DatastoreRegistry, get_or_create_datastore
from .schema import create_schema
from .thumbnail_store import ThumbnailStore
from .types import NotFoundError
from .upload_pipeline import hash_stream
from .url_store import UrlStore

_log = logging.getLogger(__name__)


def last_segments_of_path(path: str, segments: int) -> str:
    """The final ``segments`` components of a slash-separated path."""
    parts = [part for part in path.split("/") if part]
    return "/".join(parts[-segments:]) if segments > 0 else ""


def _base_path_of(location: str) -> str:
    return posixpath.normpath(posixpath.join(location, "..", "..", ".."))


class Database:
    """One connection and the stores that work on it."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._media = MediaStore(conn)
        self._registry = DatastoreRegistry(conn)
        self._thumbnails = ThumbnailStore(conn)
        self._urls = UrlStore(conn)
        self._metadata = MetadataStore(conn)
        self._exports = ExportStore(conn)
        self._attributes = MediaAttributesStore(conn)

    def media_store(self) -> MediaStore:
        return self._media

    def datastore_registry(self) -> DatastoreRegistry:
        return self._registry

    def thumbnail_store(self) -> ThumbnailStore:
        return self._thumbnails

    def url_store(self) -> UrlStore:
        return self._urls

    def metadata_store(self) -> MetadataStore:
        return self._metadata

    def export_store(self) -> ExportStore:
        return self._exports

    def media_attributes_store(self) -> MediaAttributesStore:
        return self._attributes

    def populate_datastores(self) -> None:
        """Give records stored by absolute path a file datastore and a relative location."""
        _log.info("Starting to populate datastores...")

        for thumb in self._thumbnails.get_all_without_datastore():
            base_path = _base_path_of(thumb.location)
            try:
                datastore = get_or_create_datastore(self._registry, "file", base_path)
            except (sqlite3.Error, NotFoundError) as exc:
                _log.error("Error getting datastore for thumbnail path %s: %s", base_path, exc)
                continue
            thumb.datastore_id = datastore.datastore_id
            thumb.location = last_segments_of_path(thumb.location, 3)
            try:
                self._thumbnails.update_datastore_and_location(thumb)
            except sqlite3.Error as exc:
                _log.error(
                    "Failed to update datastore for thumbnail %s %s: %s",
                    thumb.origin,
                    thumb.media_id,
                    exc,
                )
                continue
            _log.info("Updated datastore for thumbnail %s %s", thumb.origin, thumb.media_id)

        for media in self._media.get_all_without_datastore():
            base_path = _base_path_of(media.location)
            try:
                datastore = get_or_create_datastore(self._registry, "file", base_path)
            except (sqlite3.Error, NotFoundError) as exc:
                _log.error("Error getting datastore for media path %s: %s", base_path, exc)
                continue
            media.datastore_id = datastore.datastore_id
            media.location = last_segments_of_path(media.location, 3)
            try:
                self._media.update_datastore_and_location(media)
            except sqlite3.Error as exc:
                _log.error(
                    "Failed to update datastore for media %s %s: %s",
                    media.origin,
                    media.media_id,
                    exc,
                )
                continue
            _log.info("Updated datastore for media %s %s", media.origin, media.media_id)

    def populate_thumbnail_hashes(self) -> None:
        """Hash thumbnails in file datastores that have no hash recorded."""
        for thumb in self._thumbnails.get_all_without_hash():
            try:
                datastore = self._registry.get_datastore(thumb.datastore_id)
            except NotFoundError as exc:
                _log.error(
                    "Error getting datastore for thumbnail %s %s: %s",
                    thumb.origin,
                    thumb.media_id,
                    exc,
                )
                continue
            if datastore.type != "file":
                _log.error(
                    "Unrecognized datastore type for thumbnail %s %s",
                    thumb.origin,
                    thumb.media_id,
                )
                continue
            location = os.path.join(datastore.uri, thumb.location)
            with open(location, "rb") as handle:
                thumb.sha256_hash = hash_stream(handle)
            self._thumbnails.update_hash(thumb)
            _log.info("Updated hash for thumbnail at '%s' as %s", location, thumb.sha256_hash)

    def close(self) -> None:
        self._conn.close()


def open_database(path: str | os.PathLike) -> Database:
    """Open the database file, bring its schema up to date and run startup tasks."""
    conn = sqlite3.connect(os.fspath(path), check_same_thread=False)
    try:
        create_schema(conn)
        database = Database(conn)
        database.populate_datastores()
        database.populate_thumbnail_hashes()
    except BaseException:
        conn.close()
        raise
    return database
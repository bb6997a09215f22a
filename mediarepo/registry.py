"""Known datastores, looked up by ID or URI with an in-memory cache."""

from __future__ import annotations

import logging
import secrets
import sqlite3
import string
import threading
from dataclasses import replace

from .types import Datastore, NotFoundError

_log = logging.getLogger(__name__)

_SELECT_BY_ID = "SELECT datastore_id, ds_type, uri FROM datastores WHERE datastore_id = ?;"
_SELECT_BY_URI = "SELECT datastore_id, ds_type, uri FROM datastores WHERE uri = ?;"
_INSERT = "INSERT INTO datastores (datastore_id, ds_type, uri) VALUES (?, ?, ?);"
_SELECT_ALL = "SELECT datastore_id, ds_type, uri FROM datastores;"

_ALPHABET = string.ascii_letters + string.digits


def _random_string(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


class DatastoreRegistry:
    """Reads and writes datastore records, caching those it has seen."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()
        self._by_id: dict[str, Datastore] = {}
        self._by_uri: dict[str, Datastore] = {}

    def _remember(self, datastore: Datastore) -> None:
        with self._lock:
            self._by_id[datastore.datastore_id] = replace(datastore)
            self._by_uri[datastore.uri] = replace(datastore)

    def _lookup(self, cache: dict[str, Datastore], sql: str, key: str) -> Datastore:
        with self._lock:
            cached = cache.get(key)
        if cached is not None:
            return replace(cached)
        row = self._conn.execute(sql, (key,)).fetchone()
        if row is None:
            raise NotFoundError(f"no datastore for {key}")
        datastore = Datastore(datastore_id=row[0], type=row[1], uri=row[2])
        self._remember(datastore)
        return replace(datastore)

    def get_datastore(self, datastore_id: str) -> Datastore:
        return self._lookup(self._by_id, _SELECT_BY_ID, datastore_id)

    def get_datastore_by_uri(self, uri: str) -> Datastore:
        return self._lookup(self._by_uri, _SELECT_BY_URI, uri)

    def insert_datastore(self, datastore: Datastore) -> None:
        with self._conn:
            self._conn.execute(
                _INSERT, (datastore.datastore_id, datastore.type, datastore.uri)
            )
        self._remember(datastore)

    def get_all_datastores(self) -> list[Datastore]:
        return [
            Datastore(datastore_id=row[0], type=row[1], uri=row[2])
            for row in self._conn.execute(_SELECT_ALL)
        ]


def get_or_create_datastore(registry: DatastoreRegistry, ds_type: str, uri: str) -> Datastore:
    """Return the datastore at ``uri``, registering a new one if none exists."""
    try:
        return registry.get_datastore_by_uri(uri)
    except NotFoundError:
        pass
    datastore = Datastore(datastore_id=_random_string(32), type=ds_type, uri=uri)
    try:
        registry.insert_datastore(datastore)
    except sqlite3.Error:
        _log.error("Error creating datastore for URI %s", uri)
        raise
    return datastore
"""Records of data exports and their parts."""

from __future__ import annotations

import sqlite3

from .types import ExportMetadata, ExportPart, NotFoundError

_PART_COLUMNS = 'export_id, "index", size_bytes, file_name, datastore_id, location'

_INSERT_EXPORT = "INSERT INTO exports (export_id, entity) VALUES (?, ?);"
_INSERT_PART = f"INSERT INTO export_parts ({_PART_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?);"
_SELECT_EXPORT = "SELECT export_id, entity FROM exports WHERE export_id = ?;"
_SELECT_PARTS = (
    f'SELECT {_PART_COLUMNS} FROM export_parts WHERE export_id = ? ORDER BY "index";'
)
_SELECT_PART = f'SELECT {_PART_COLUMNS} FROM export_parts WHERE export_id = ? AND "index" = ?;'
_DELETE_PARTS = "DELETE FROM export_parts WHERE export_id = ?;"
_DELETE_EXPORT = "DELETE FROM exports WHERE export_id = ?;"


def _part_from_row(row: tuple) -> ExportPart:
    export_id, index, size_bytes, file_name, datastore_id, location = row
    return ExportPart(
        export_id=export_id,
        index=index,
        file_name=file_name,
        size_bytes=size_bytes,
        datastore_id=datastore_id,
        location=location,
    )


class ExportStore:
    """Reads and writes export metadata and parts."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert_export(self, export_id: str, entity: str) -> None:
        with self._conn:
            self._conn.execute(_INSERT_EXPORT, (export_id, entity))

    def insert_export_part(
        self,
        export_id: str,
        index: int,
        size: int,
        name: str,
        datastore_id: str,
        location: str,
    ) -> None:
        with self._conn:
            self._conn.execute(
                _INSERT_PART, (export_id, index, size, name, datastore_id, location)
            )

    def get_export_metadata(self, export_id: str) -> ExportMetadata:
        row = self._conn.execute(_SELECT_EXPORT, (export_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"no export {export_id}")
        return ExportMetadata(export_id=row[0], entity=row[1])

    def get_export_parts(self, export_id: str) -> list[ExportPart]:
        return [_part_from_row(row) for row in self._conn.execute(_SELECT_PARTS, (export_id,))]

    def get_export_part(self, export_id: str, index: int) -> ExportPart:
        row = self._conn.execute(_SELECT_PART, (export_id, index)).fetchone()
        if row is None:
            raise NotFoundError(f"no part {index} of export {export_id}")
        return _part_from_row(row)

    def delete_export_and_parts(self, export_id: str) -> None:
        with self._conn:
            self._conn.execute(_DELETE_PARTS, (export_id,))
            self._conn.execute(_DELETE_EXPORT, (export_id,))
"""Configured datastores: choosing one, locating one, and moving objects in and out."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import BinaryIO, Protocol

from .file_store import delete_persisted_file, persist_file, persist_file_at_location
from .registry import DatastoreRegistry, get_or_create_datastore
from .types import Datastore, NotFoundError, ObjectInfo

_log = logging.getLogger(__name__)


class DatastoreError(Exception):
    """Raised when a datastore is misconfigured, missing or cannot do what was asked."""


@dataclass
class DatastoreConfig:
    type: str
    enabled: bool = True
    media_kinds: list[str] = field(default_factory=list)
    options: dict[str, str] = field(default_factory=dict)


class _SizeSource(Protocol):
    def get_estimated_size_of_datastore(self, datastore_id: str) -> int: ...


@dataclass
class DatastoreRef:
    """A registered datastore together with the configuration that describes it."""

    datastore_id: str
    type: str
    uri: str
    config: DatastoreConfig

    @classmethod
    def of(cls, datastore: Datastore, config: DatastoreConfig) -> "DatastoreRef":
        return cls(
            datastore_id=datastore.datastore_id,
            type=datastore.type,
            uri=datastore.uri,
            config=config,
        )

    def _unsupported(self) -> DatastoreError:
        if self.type in ("s3", "ipfs"):
            return DatastoreError(f"unsupported datastore type: {self.type}")
        return DatastoreError("unknown datastore type")

    def upload_file(self, stream: BinaryIO, expected_length: int) -> ObjectInfo:
        """Store a new object; ``expected_length`` may be zero or less when unknown."""
        _log.info("Uploading to datastore %s (%s)", self.datastore_id, self.uri)
        if self.type == "file":
            return persist_file(self.uri, stream)
        raise self._unsupported()

    def delete_object(self, location: str) -> None:
        if self.type == "file":
            delete_persisted_file(self.uri, location)
        elif self.type == "ipfs":
            _log.warning("Unsupported operation: deleting from IPFS datastore")
        else:
            raise self._unsupported()

    def download_file(self, location: str) -> BinaryIO:
        if self.type == "file":
            return open(os.path.join(self.uri, location), "rb")
        raise self._unsupported()

    def object_exists(self, location: str) -> bool:
        if self.type == "file":
            return os.path.exists(os.path.join(self.uri, location))
        if self.type == "ipfs":
            _log.warning("Unsupported operation: existence in IPFS datastore")
            return False
        if self.type == "s3":
            return False
        raise DatastoreError("unknown datastore type")

    def overwrite_object(self, location: str, stream: BinaryIO) -> None:
        if self.type == "file":
            persist_file_at_location(os.path.join(self.uri, location), stream)
        elif self.type == "ipfs":
            _log.warning("Unsupported operation: overwriting file in IPFS datastore")
            raise DatastoreError("unsupported operation")
        else:
            raise self._unsupported()


def get_uri_for_datastore(ds_conf: DatastoreConfig) -> str:
    """The URI under which a configured datastore is registered."""
    options = ds_conf.options
    if ds_conf.type == "file":
        if "path" not in options:
            raise DatastoreError("Missing 'path' on file datastore")
        return options["path"]
    if ds_conf.type == "s3":
        if "endpoint" not in options or "bucketName" not in options:
            raise DatastoreError("Missing 'endpoint' or 'bucketName' on s3 datastore")
        uri = f"s3://{options['endpoint']}/{options['bucketName']}"
        if "region" in options:
            uri += f"?region={options['region']}"
        return uri
    if ds_conf.type == "ipfs":
        return "ipfs://localhost"
    raise DatastoreError(f"Unknown datastore type: {ds_conf.type}")


def get_datastore_config(
    datastore: Datastore, configs: Iterable[DatastoreConfig]
) -> DatastoreConfig:
    """The configuration whose type and URI match a registered datastore."""
    for ds_conf in configs:
        if ds_conf.type == datastore.type and get_uri_for_datastore(ds_conf) == datastore.uri:
            return ds_conf
    raise DatastoreError("datastore not found")


def get_available_datastores(
    registry: DatastoreRegistry, configs: Iterable[DatastoreConfig]
) -> list[Datastore]:
    """Every enabled configured datastore, registering those not yet known."""
    return [
        get_or_create_datastore(registry, ds_conf.type, get_uri_for_datastore(ds_conf))
        for ds_conf in configs
        if ds_conf.enabled
    ]


def locate_datastore(
    registry: DatastoreRegistry, datastore_id: str, configs: Iterable[DatastoreConfig]
) -> DatastoreRef:
    datastore = registry.get_datastore(datastore_id)
    return DatastoreRef.of(datastore, get_datastore_config(datastore, configs))


def download_stream(
    registry: DatastoreRegistry,
    datastore_id: str,
    location: str,
    configs: Iterable[DatastoreConfig],
) -> BinaryIO:
    return locate_datastore(registry, datastore_id, configs).download_file(location)


def pick_datastore(
    for_kind: str,
    configs: Sequence[DatastoreConfig],
    registry: DatastoreRegistry,
    metadata_store: _SizeSource,
) -> DatastoreRef:
    """The enabled datastore accepting ``for_kind`` that holds the fewest bytes."""
    _log.info("Finding a suitable datastore to pick for %s", for_kind)
    possible = [c for c in configs if c.enabled and for_kind in c.media_kinds]

    target: DatastoreRef | None = None
    target_size = 0
    for ds_conf in possible:
        try:
            datastore = registry.get_datastore_by_uri(get_uri_for_datastore(ds_conf))
        except (NotFoundError, DatastoreError) as exc:
            _log.error("Error getting datastore: %s", exc)
            continue

        size = 0
        if len(possible) > 1:
            try:
                size = metadata_store.get_estimated_size_of_datastore(datastore.datastore_id)
            except Exception as exc:  # noqa: BLE001 - a bad estimate only skips this candidate
                _log.error(
                    "Error estimating datastore size for %s: %s", datastore.datastore_id, exc
                )
                continue

        if target is None or size < target_size:
            target = DatastoreRef.of(datastore, ds_conf)
            target_size = size

    if target is None:
        raise DatastoreError("failed to pick a datastore: none available")
    _log.info("Using %s", target.uri)
    return target
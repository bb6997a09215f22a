"""A datastore that keeps objects as files below a base directory."""

from __future__ import annotations

import hashlib
import logging
import os
import secrets
import string
from typing import BinaryIO

from .types import ObjectInfo

_log = logging.getLogger(__name__)

_ALPHABET = string.ascii_letters + string.digits
_CHUNK = 64 * 1024
_MAX_ATTEMPTS = 5


def persist_file(base_path: str, stream: BinaryIO) -> ObjectInfo:
    """Store the stream under a fresh random path and describe what was written."""
    try:
        for _ in range(_MAX_ATTEMPTS):
            file_id = "".join(secrets.choice(_ALPHABET) for _ in range(64))
            primary, secondary, file_name = file_id[:2], file_id[2:4], file_id[4:]
            target_dir = os.path.join(base_path, primary, secondary)
            target_file = os.path.join(target_dir, file_name)
            _log.info("Checking if file exists: %s", target_file)
            if not os.path.exists(target_file):
                break
        else:
            raise RuntimeError("failed to find a suitable directory")

        os.makedirs(target_dir, mode=0o755, exist_ok=True)
        size_bytes, sha256_hash = persist_file_at_location(target_file, stream)
    finally:
        stream.close()

    return ObjectInfo(
        location=f"{primary}/{secondary}/{file_name}",
        sha256_hash=sha256_hash,
        size_bytes=size_bytes,
    )


def persist_file_at_location(target_file: str, stream: BinaryIO) -> tuple[int, str]:
    """Write the stream to ``target_file``; return its size and hex SHA-256."""
    digest = hashlib.sha256()
    size_bytes = 0
    try:
        with open(target_file, "wb") as out:
            for chunk in iter(lambda: stream.read(_CHUNK), b""):
                digest.update(chunk)
                out.write(chunk)
                size_bytes += len(chunk)
    finally:
        stream.close()
    _log.info("Wrote %d bytes to file", size_bytes)
    return size_bytes, digest.hexdigest()


def delete_persisted_file(base_path: str, location: str) -> None:
    """Remove a stored object; an object already gone counts as removed."""
    try:
        os.remove(os.path.join(base_path, location))
    except FileNotFoundError:
        pass
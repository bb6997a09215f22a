"""Steps of the upload pipeline: limiting, buffering, hashing and ID generation."""

from __future__ import annotations

import hashlib
import io
import secrets
import string
import time
from typing import BinaryIO, Protocol

from cachetools import TTLCache

_ALPHABET = string.ascii_letters + string.digits
_CHUNK = 64 * 1024
_MAX_ATTEMPTS = 10

_recent_media_ids: TTLCache = TTLCache(maxsize=65536, ttl=30)


class MediaQuarantinedError(Exception):
    """Raised when uploaded content matches quarantined media."""


class _QuarantineSource(Protocol):
    def is_quarantined(self, sha256_hash: str) -> bool: ...


class _ReservationSource(Protocol):
    def is_reserved(self, origin: str, media_id: str) -> bool: ...


class _LimitedReader(io.RawIOBase):
    """Reads at most ``limit`` bytes from a stream; closing it leaves the stream open."""

    def __init__(self, stream: BinaryIO, limit: int) -> None:
        super().__init__()
        self._stream = stream
        self._remaining = limit

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._remaining <= 0:
            return 0
        view = memoryview(buffer)[: self._remaining]
        data = self._stream.read(len(view)) or b""
        view[: len(data)] = data
        self._remaining -= len(data)
        return len(data)


def limit_stream_length(stream: BinaryIO, max_size_bytes: int) -> BinaryIO:
    """Cap the stream at ``max_size_bytes`` when that is positive."""
    if max_size_bytes > 0:
        return _LimitedReader(stream, max_size_bytes)
    return stream


def buffer_stream(stream: BinaryIO) -> bytes:
    """Read the whole stream into memory."""
    return stream.read()


def hash_stream(stream: BinaryIO) -> str:
    """Hex SHA-256 digest of everything left in the stream."""
    digest = hashlib.sha256()
    for chunk in iter(lambda: stream.read(_CHUNK), b""):
        digest.update(chunk)
    return digest.hexdigest()


def check_quarantine_status(media_store: _QuarantineSource, sha256_hash: str) -> None:
    """Raise MediaQuarantinedError if content with this hash is quarantined."""
    if media_store.is_quarantined(sha256_hash):
        raise MediaQuarantinedError("media quarantined")


def generate_media_id(metadata_store: _ReservationSource, origin: str) -> str:
    """Produce a media ID that is neither recently issued nor reserved."""
    for _ in range(_MAX_ATTEMPTS):
        seed = "".join(secrets.choice(_ALPHABET) for _ in range(64))
        seed += str(time.time_ns() // 1_000_000)
        media_id = hashlib.sha1(seed.encode("utf-8")).hexdigest()
        if media_id in _recent_media_ids:
            continue
        if metadata_store.is_reserved(origin, media_id):
            continue
        _recent_media_ids[media_id] = True
        return media_id
    raise RuntimeError(f"failed to generate a media ID after {_MAX_ATTEMPTS} rounds")
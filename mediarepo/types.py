"""Plain records shared by the stores, datastores and thumbnailers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, BinaryIO, Optional


class NotFoundError(LookupError):
    """Raised when a record that was asked for does not exist."""


PURPOSE_NONE = "none"
PURPOSE_PINNED = "pinned"
ALL_PURPOSES = (PURPOSE_NONE, PURPOSE_PINNED)


@dataclass
class BackgroundTask:
    id: int
    name: str
    params: dict[str, Any] = field(default_factory=dict)
    start_ts: int = 0
    end_ts: int = 0


@dataclass
class Datastore:
    datastore_id: str
    type: str
    uri: str


@dataclass
class DatastoreMigrationEstimate:
    thumbnails_affected: int = 0
    thumbnail_hashes_affected: int = 0
    thumbnail_bytes: int = 0
    media_affected: int = 0
    media_hashes_affected: int = 0
    media_bytes: int = 0
    total_hashes_affected: int = 0
    total_bytes: int = 0


@dataclass
class ExportMetadata:
    export_id: str
    entity: str


@dataclass
class ExportPart:
    export_id: str
    index: int
    file_name: str = ""
    size_bytes: int = 0
    datastore_id: str = ""
    location: str = ""


@dataclass
class Media:
    origin: str
    media_id: str
    upload_name: str = ""
    content_type: str = ""
    user_id: str = ""
    sha256_hash: str = ""
    size_bytes: int = 0
    datastore_id: str = ""
    location: str = ""
    creation_ts: int = 0
    quarantined: bool = False

    def mxc_uri(self) -> str:
        """The ``mxc://`` URI that names this media."""
        return f"mxc://{self.origin}/{self.media_id}"


@dataclass
class MinimalMedia:
    origin: str
    media_id: str
    stream: Optional[BinaryIO] = None
    upload_name: str = ""
    content_type: str = ""
    size_bytes: int = 0
    known_media: Optional[Media] = None


@dataclass
class MinimalMediaMetadata:
    size_bytes: int = 0
    sha256_hash: str = ""
    location: str = ""
    creation_ts: int = 0
    last_access_ts: int = 0
    datastore_id: str = ""


@dataclass
class MediaAttributes:
    origin: str
    media_id: str
    purpose: str = PURPOSE_NONE


@dataclass
class ObjectInfo:
    location: str
    sha256_hash: str
    size_bytes: int


@dataclass
class UserStats:
    user_id: str
    uploaded_bytes: int = 0


@dataclass
class Thumbnail:
    origin: str
    media_id: str
    width: int
    height: int
    method: str  # "crop" or "scale"
    animated: bool = False
    content_type: str = ""
    size_bytes: int = 0
    datastore_id: str = ""
    location: str = ""
    creation_ts: int = 0
    sha256_hash: str = ""


@dataclass
class StreamedThumbnail:
    thumbnail: Thumbnail
    stream: BinaryIO


@dataclass
class UrlPreview:
    url: str = ""
    site_name: str = ""
    type: str = ""
    description: str = ""
    title: str = ""
    image_mxc: str = ""
    image_type: str = ""
    image_size: int = 0
    image_width: int = 0
    image_height: int = 0
    language_header: str = ""


@dataclass
class CachedUrlPreview:
    preview: UrlPreview = field(default_factory=UrlPreview)
    search_url: str = ""
    error_code: str = ""
    fetched_ts: int = 0


@dataclass
class AudioInfo:
    key_samples: list[tuple[float, float]] = field(default_factory=list)
    duration: timedelta = timedelta(0)
    total_samples: int = 0
    channels: int = 0


@dataclass
class GeneratedThumbnail:
    animated: bool
    content_type: str
    reader: BinaryIO
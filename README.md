# mediarepo

The storage layer of a Matrix media repository, kept in SQLite. It provides:

- records that describe media, thumbnails, URL previews, exports, background
  tasks and user statistics (`mediarepo.types`)
- stores for each kind of record: `MediaStore`, `ThumbnailStore`, `UrlStore`,
  `MetadataStore`, `ExportStore` and `MediaAttributesStore`, along with a
  `DatastoreRegistry` that records where files are kept
- a `Database` (`mediarepo.database`) that creates the schema, hands out the
  stores and runs start-up tasks. These tasks give older rows a file datastore
  and a relative location, and they hash thumbnails that have no hash yet
- a file-system datastore (`mediarepo.file_store`) and the datastore
  configuration helpers in `mediarepo.datastores`: `DatastoreConfig`,
  `DatastoreRef`, `get_uri_for_datastore`, `get_datastore_config`,
  `get_available_datastores`, `locate_datastore`, `download_stream` and
  `pick_datastore`
- steps of the upload pipeline (`mediarepo.upload_pipeline`): length
  limiting, buffering, SHA-256 hashing, quarantine checks and media ID
  generation
- per-user upload quotas matched by `*` globs (`mediarepo.quota`)
- read access to the `local_media_repository` table of a Synapse SQLite
  database (`mediarepo.synapse_db`)

## Installing

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## Using the stores

```python
from mediarepo.database import open_database
from mediarepo.types import Media

db = open_database("media.db")
db.media_store().insert(
    Media(
        origin="example.com",
        media_id="abc123",
        upload_name="cat.png",
        content_type="image/png",
        user_id="@alice:example.com",
        sha256_hash="0" * 64,
        size_bytes=1024,
        datastore_id="ds1",
        location="ab/cd/efgh",
    )
)
print(db.media_store().get("example.com", "abc123").mxc_uri())
db.close()
```

A lookup that finds no row raises `mediarepo.types.NotFoundError`.

## Storing files

```python
from mediarepo.file_store import persist_file

with open("cat.png", "rb") as stream:
    info = persist_file("/var/media", stream)
print(info.location, info.sha256_hash, info.size_bytes)
```

`persist_file` writes the object under a random two-level directory below
the base path. It returns an `ObjectInfo` that holds the relative location,
the hex SHA-256 digest and the size.

## Choosing a datastore

```python
from mediarepo.datastores import DatastoreConfig, get_available_datastores, pick_datastore

configs = [DatastoreConfig(type="file", media_kinds=["local_media"], options={"path": "/var/media"})]
get_available_datastores(db.datastore_registry(), configs)
ref = pick_datastore("local_media", configs, db.datastore_registry(), db.metadata_store())
```

When more than one datastore accepts the kind, `pick_datastore` chooses the
one that holds the fewest bytes.

## Quotas

```python
from mediarepo.quota import QuotaConfig, UserQuota, is_user_within_quota

config = QuotaConfig(enabled=True, user_quotas=[UserQuota(glob="@*:example.com", max_bytes=10_000)])
is_user_within_quota(db.metadata_store(), "@alice:example.com", config)
```

The first rule whose glob matches the user applies. A `max_bytes` of zero
means there is no limit. A user with no recorded statistics is always within
quota.

## What this package does not do

- It runs no HTTP server and makes no calls to a homeserver. Access tokens
  are not checked here.
- Only the `file` datastore type stores objects. For `s3` and `ipfs`
  datastores, `get_uri_for_datastore` works, but uploads, downloads and
  overwrites raise `DatastoreError`.
- It does not generate thumbnails or URL previews. It only keeps their
  records.

## Running the tests

```
pytest
```
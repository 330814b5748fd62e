"""Object storage access for the archive bucket.

The jobs only need two operations: list the objects under a prefix and write
one object. :class:`FsspecObjectStore` provides both over any fsspec URL, so
the same code runs against ``memory://`` in tests, a local directory, or a
remote bucket whose fsspec plugin is installed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, Iterator, Mapping, Optional, Protocol

import fsspec

from .errors import StorageError

__all__ = ["StoredObject", "ObjectStore", "FsspecObjectStore", "get_object_store"]

LOGGER = logging.getLogger("NSArchive.storage")

# Listing metadata keys that carry a SHA1 digest, by backend.
_SHA1_KEYS = ("sha1", "contentSha1", "content_sha1", "fileInfo.sha1")

# Upload keyword carrying the content type, by fsspec protocol.
_CONTENT_TYPE_KWARGS = {"s3": "ContentType", "s3a": "ContentType", "gs": "content_type", "gcs": "content_type"}


@dataclass(frozen=True)
class StoredObject:
    """Listing entry for one stored object."""

    name: str
    size: Optional[int] = None
    sha1: Optional[str] = None


class ObjectStore(Protocol):
    """Protocol describing the storage operations required by the jobs."""

    def list(self, prefix: str) -> Iterator[StoredObject]:
        """Yield objects whose names start with ``prefix``."""

    def put(self, name: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Write ``data`` to the object ``name``."""


def _sha1_from_info(info: Mapping[str, object]) -> Optional[str]:
    for key in _SHA1_KEYS:
        value = info.get(key)
        if isinstance(value, str) and value and value != "none":
            return value.lower()
    return None


class FsspecObjectStore:
    """Object store backed by an fsspec filesystem rooted at ``url``."""

    def __init__(self, url: str, **storage_options: object) -> None:
        try:
            fs, path = fsspec.core.url_to_fs(url, **storage_options)
        except (ImportError, ValueError) as exc:
            raise StorageError(f"Unsupported storage URL {url!r}: {exc}") from exc
        self.url = url
        self.fs = fs
        self.base_path = PurePosixPath(path)

    def _full_path(self, name: str) -> str:
        return str(self.base_path / name)

    def _relative_name(self, path: str) -> str:
        base = str(self.base_path).rstrip("/")
        stripped = self.fs._strip_protocol(path)
        if stripped.startswith(base + "/"):
            return stripped[len(base) + 1 :]
        return stripped.lstrip("/")

    def list(self, prefix: str) -> Iterator[StoredObject]:
        """Yield objects under ``prefix`` sorted by name.

        A missing prefix directory yields nothing. Failures are not retried.
        """

        root = self._full_path(prefix.rstrip("/"))
        try:
            entries: Dict[str, Mapping[str, object]] = self.fs.find(root, detail=True)
        except FileNotFoundError:
            entries = {}
        except OSError as exc:
            raise StorageError(f"Listing {prefix!r} failed: {exc}") from exc

        for path in sorted(entries):
            info = entries[path]
            if info.get("type") == "directory":
                continue
            size = info.get("size")
            yield StoredObject(
                name=self._relative_name(path),
                size=int(size) if isinstance(size, (int, float)) else None,
                sha1=_sha1_from_info(info),
            )

    def put(self, name: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Write ``data`` to ``name``, replacing any existing object."""

        target = self._full_path(name)
        kwargs: Dict[str, object] = {}
        protocols = self.fs.protocol if isinstance(self.fs.protocol, tuple) else (self.fs.protocol,)
        if content_type:
            for protocol in protocols:
                key = _CONTENT_TYPE_KWARGS.get(protocol)
                if key:
                    kwargs[key] = content_type
                    break
        LOGGER.info(
            "uploading %d bytes as %s",
            len(data),
            name,
            extra={"stage": "upload", "extra_fields": {"object": name, "bytes": len(data)}},
        )
        try:
            self.fs.makedirs(str(PurePosixPath(target).parent), exist_ok=True)
            self.fs.pipe_file(target, data, **kwargs)
        except OSError as exc:
            raise StorageError(f"Upload of {name!r} failed: {exc}") from exc


def get_object_store(url: str) -> ObjectStore:
    """Instantiate the object store for ``url``."""

    return FsspecObjectStore(url)

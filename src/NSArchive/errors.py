"""Exception hierarchy shared across archive collection, cataloguing, and publishing.

The archive spans HTTP retrieval from NationStates, uploads to object storage,
and the catalog build that turns a storage listing into ``index.html``. This
module groups the failure modes into a small hierarchy so callers (mainly the
CLI) can react to :class:`ArchiveError` as a whole while tests and jobs can
still target the specialised subclasses.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ArchiveError",
    "ConfigurationError",
    "UserConfigError",
    "ConfigError",
    "MalformedRecordName",
    "DownloadFailure",
    "StorageError",
    "HeartbeatError",
]


class ArchiveError(RuntimeError):
    """Base exception for archive collection, catalog, or publish failures."""


class ConfigurationError(ArchiveError):
    """Raised when configuration inputs are invalid."""


class MalformedRecordName(ArchiveError):
    """Raised when a stored object name does not match its category template.

    The catalog guarantees completeness, so a single unparsable name aborts the
    listing pass instead of being skipped.
    """

    def __init__(self, name: str, category: Optional[str] = None, reason: str = "") -> None:
        detail = f"malformed {category or 'object'} name {name!r}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)
        self.name = name
        self.category = category
        self.reason = reason


class DownloadFailure(ArchiveError):
    """Raised when an HTTP download attempt fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class StorageError(ArchiveError):
    """Raised when the object store rejects a listing or an upload."""


class HeartbeatError(ArchiveError):
    """Raised when the post-publish heartbeat ping fails."""


class UserConfigError(ConfigurationError):
    """Raised when CLI arguments or YAML configuration inputs are invalid."""


# Backwards compatibility alias used throughout the package.
ConfigError = UserConfigError
# === NAVMAP v1 ===
# {
#   "module": "NSArchive.errors",
#   "purpose": "Define the exception hierarchy used across archive jobs and the catalog builder",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "configuration", "name": "Configuration Errors", "anchor": "CFG", "kind": "api"},
#     {"id": "catalog", "name": "Catalog Errors", "anchor": "CAT", "kind": "api"},
#     {"id": "io", "name": "Download, Storage & Heartbeat Errors", "anchor": "IO", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""NSArchive: daily NationStates dump archival and catalog publishing.

The catalog core (:mod:`NSArchive.naming`, :mod:`NSArchive.catalog`,
:mod:`NSArchive.render`) is pure and free of I/O; the job modules wrap it with
HTTP downloads and object storage.
"""

from __future__ import annotations

from importlib import metadata as importlib_metadata

from .catalog import Catalog, DayNode, MonthNode, YearNode, build
from .errors import ArchiveError, MalformedRecordName
from .naming import Category, ObjectRecord, derive_url, object_name, parse_object_name
from .render import render

try:  # pragma: no cover - metadata may be unavailable during development
    __version__ = importlib_metadata.version("nsarchive")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - local source tree
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "ArchiveError",
    "MalformedRecordName",
    "Category",
    "ObjectRecord",
    "Catalog",
    "YearNode",
    "MonthNode",
    "DayNode",
    "build",
    "render",
    "derive_url",
    "object_name",
    "parse_object_name",
]

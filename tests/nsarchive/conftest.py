"""Shared fixtures for the NSArchive test suite."""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Callable, Optional

import pytest

from NSArchive.naming import Category, ObjectRecord, derive_url, object_name
from NSArchive.settings import invalidate_default_config_cache
from NSArchive.storage import FsspecObjectStore


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Drop NSARCHIVE_* variables and the memoised default config around each test."""

    for key in list(os.environ):
        if key.upper().startswith("NSARCHIVE_"):
            monkeypatch.delenv(key, raising=False)
    invalidate_default_config_cache()
    yield
    invalidate_default_config_cache()


@pytest.fixture
def store(tmp_path: Path) -> FsspecObjectStore:
    """Object store rooted in a per-test local directory."""

    return FsspecObjectStore((tmp_path / "bucket").as_uri())


@pytest.fixture
def make_record() -> Callable[..., ObjectRecord]:
    """Factory for records that follow the real naming convention."""

    def _make(
        day: date,
        category: Category,
        url: Optional[str] = None,
        **kwargs: object,
    ) -> ObjectRecord:
        name = object_name(category, day)
        return ObjectRecord(
            name=name,
            category=category,
            date=day,
            url=url if url is not None else derive_url(name),
            **kwargs,
        )

    return _make

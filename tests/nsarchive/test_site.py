"""Catalog publication end to end against a local object store."""

from __future__ import annotations

from pathlib import Path
from typing import List

import httpx
import pytest

from NSArchive.errors import HeartbeatError, MalformedRecordName
from NSArchive.naming import Category
from NSArchive.net import build_http_client
from NSArchive.settings import ArchiveConfig
from NSArchive.site import build_catalog, list_records, publish_site
from NSArchive.storage import FsspecObjectStore


def _seed(store: FsspecObjectStore) -> None:
    store.put("foundings/2023-12-31-foundings.json", b"[]")
    store.put("regions/2024-01-05-regions.xml.gz", b"rr")
    store.put("nations/2024-01-05-nations.xml.gz", b"nnn")


def _config(store: FsspecObjectStore, **site: object) -> ArchiveConfig:
    config = ArchiveConfig()
    config.storage.url = store.url
    for key, value in site.items():
        setattr(config.site, key, value)
    return config


# --- Test Cases ---


def test_list_records_parses_each_listed_object(store: FsspecObjectStore) -> None:
    _seed(store)

    records = list(list_records(store, Category.NATIONS, url_template="https://cdn/{name}"))

    assert [(r.name, r.size, r.url) for r in records] == [
        ("nations/2024-01-05-nations.xml.gz", 3, "https://cdn/nations/2024-01-05-nations.xml.gz")
    ]


def test_build_catalog_merges_all_category_listings(store: FsspecObjectStore) -> None:
    _seed(store)

    catalog = build_catalog(store)

    assert [year.year for year in catalog.years] == [2023, 2024]
    day_5 = catalog.years[1].months[0].days[0]
    assert [c for c, _ in day_5.populated()] == [Category.NATIONS, Category.REGIONS]
    assert len(catalog) == 3


def test_publish_site_uploads_index(store: FsspecObjectStore, tmp_path: Path) -> None:
    _seed(store)

    catalog = publish_site(store, _config(store))

    page = (tmp_path / "bucket" / "index.html").read_text(encoding="utf-8")
    assert len(catalog) == 3
    assert page.index("<h4>2023-12-31</h4>") < page.index("<h4>2024-01-05</h4>")
    assert 'href="file/nsarchive/nations/2024-01-05-nations.xml.gz">nations</a> (3 B)' in page


def test_malformed_name_aborts_before_publishing(store: FsspecObjectStore, tmp_path: Path) -> None:
    _seed(store)
    store.put("nations/2024-02-30-nations.xml.gz", b"bad")

    with pytest.raises(MalformedRecordName) as excinfo:
        publish_site(store, _config(store))

    assert excinfo.value.name == "nations/2024-02-30-nations.xml.gz"
    assert not (tmp_path / "bucket" / "index.html").exists()


def test_empty_bucket_publishes_header_only_page(store: FsspecObjectStore, tmp_path: Path) -> None:
    catalog = publish_site(store, _config(store))

    page = (tmp_path / "bucket" / "index.html").read_text(encoding="utf-8")
    assert len(catalog) == 0
    assert "<h1>NSArchive</h1>" in page
    assert "<h4>" not in page


def test_heartbeat_is_sent_after_upload(store: FsspecObjectStore, tmp_path: Path) -> None:
    pinged: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert (tmp_path / "bucket" / "index.html").exists()
        pinged.append(str(request.url))
        return httpx.Response(200)

    with build_http_client(transport=httpx.MockTransport(handler)) as client:
        publish_site(store, _config(store, heartbeat_url="https://hc.example/ping/1"), client=client)

    assert pinged == ["https://hc.example/ping/1"]


def test_failed_heartbeat_raises(store: FsspecObjectStore) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with build_http_client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(HeartbeatError):
            publish_site(store, _config(store, heartbeat_url="https://hc.example/ping/1"), client=client)

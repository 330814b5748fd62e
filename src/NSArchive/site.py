"""Catalog page publication: list, aggregate, render, upload, heartbeat."""

from __future__ import annotations

import logging
from typing import Iterator, Optional, Sequence

import httpx

from .catalog import Catalog, build
from .errors import HeartbeatError
from .naming import CATEGORY_ORDER, DEFAULT_URL_TEMPLATE, Category, ObjectRecord, parse_object_name
from .render import CONTENT_TYPE, render
from .settings import ArchiveConfig
from .storage import ObjectStore

__all__ = ["list_records", "build_catalog", "publish_site", "send_heartbeat"]

LOGGER = logging.getLogger("NSArchive.site")


def list_records(
    store: ObjectStore,
    category: Category,
    *,
    url_template: str = DEFAULT_URL_TEMPLATE,
) -> Iterator[ObjectRecord]:
    """Yield a parsed record for every object under ``category``'s prefix.

    Raises:
        MalformedRecordName: On the first name that does not parse.
    """

    for stored in store.list(category.prefix):
        yield parse_object_name(
            stored.name,
            category,
            url_template=url_template,
            size=stored.size,
            sha1=stored.sha1,
        )


def build_catalog(
    store: ObjectStore,
    *,
    url_template: str = DEFAULT_URL_TEMPLATE,
    categories: Sequence[Category] = CATEGORY_ORDER,
) -> Catalog:
    """List each category in turn and aggregate everything into one catalog."""

    catalog = Catalog()
    for category in categories:
        build(list_records(store, category, url_template=url_template), catalog)
    if catalog.overwritten:
        LOGGER.info(
            "%d catalog slots were overwritten by duplicate entries",
            catalog.overwritten,
            extra={"stage": "catalog"},
        )
    return catalog


def send_heartbeat(client: httpx.Client, url: str) -> None:
    try:
        client.get(url).raise_for_status()
    except httpx.HTTPError as exc:
        raise HeartbeatError(f"heartbeat failed: {exc}") from exc


def publish_site(
    store: ObjectStore,
    config: ArchiveConfig,
    *,
    client: Optional[httpx.Client] = None,
) -> Catalog:
    """Rebuild and upload the catalog page, then ping the heartbeat URL.

    Nothing is uploaded unless every listed object parses.
    """

    catalog = build_catalog(store, url_template=config.storage.public_url_template)
    LOGGER.info("catalog holds %d objects", len(catalog), extra={"stage": "catalog"})
    page = render(catalog, title=config.site.title, intro=config.site.intro_html)
    store.put(config.storage.index_name, page, content_type=CONTENT_TYPE)

    if config.site.heartbeat_url:
        if client is None:
            raise ValueError("an HTTP client is required when heartbeat_url is configured")
        send_heartbeat(client, config.site.heartbeat_url)
    return catalog

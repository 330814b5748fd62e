"""Daily nations/regions dump archival."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Sequence

import httpx

from .naming import Category, object_name
from .net import get_with_retries
from .settings import HttpSettings
from .storage import ObjectStore

__all__ = ["DUMP_URL_TEMPLATE", "DUMP_CATEGORIES", "dump_url", "upload_dump", "upload_dumps"]

LOGGER = logging.getLogger("NSArchive.dumps")

DUMP_URL_TEMPLATE = "https://www.nationstates.net/pages/{kind}.xml.gz"
DUMP_CATEGORIES = (Category.NATIONS, Category.REGIONS)


def dump_url(category: Category) -> str:
    if category not in DUMP_CATEGORIES:
        raise ValueError(f"no daily dump for category {category.value!r}")
    return DUMP_URL_TEMPLATE.format(kind=category.value)


def upload_dump(
    client: httpx.Client,
    store: ObjectStore,
    category: Category,
    day: date,
    *,
    settings: Optional[HttpSettings] = None,
) -> str:
    """Download today's ``category`` dump and store it; returns the object name."""

    url = dump_url(category)
    LOGGER.info("downloading dump from %s", url, extra={"stage": "download"})
    response = get_with_retries(client, url, settings=settings)
    name = object_name(category, day)
    store.put(name, response.content, content_type="application/gzip")
    return name


def upload_dumps(
    client: httpx.Client,
    store: ObjectStore,
    *,
    day: Optional[date] = None,
    categories: Sequence[Category] = DUMP_CATEGORIES,
    settings: Optional[HttpSettings] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[str]:
    """Archive each dump in ``categories`` under ``day`` (UTC today by default)."""

    settings = settings or HttpSettings()
    day = day or datetime.now(timezone.utc).date()
    names: List[str] = []
    for index, category in enumerate(categories):
        if index:
            sleep(settings.dump_delay_sec)
        names.append(upload_dump(client, store, category, day, settings=settings))
    LOGGER.info("uploaded %d dumps for %s", len(names), day.isoformat(), extra={"stage": "dumps"})
    return names

# === NAVMAP v1 ===
# {
#   "module": "NSArchive.foundings",
#   "purpose": "Collect a UTC day of founding happenings from the World API and archive them as JSON",
#   "sections": [
#     {"id": "founding", "name": "Founding", "anchor": "class-founding", "kind": "class"},
#     {"id": "parse-happenings", "name": "parse_happenings", "anchor": "function-parse-happenings", "kind": "function"},
#     {"id": "fetch-foundings", "name": "fetch_foundings", "anchor": "function-fetch-foundings", "kind": "function"},
#     {"id": "collect-foundings", "name": "collect_foundings", "anchor": "function-collect-foundings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Founding happenings collection.

The World API returns at most 100 happenings per request, newest first. The
pager walks backwards through the day by passing the id of the oldest event
seen so far as ``beforeid`` until a page comes back empty. Founding data is
always collected for the previous UTC day, so the archive runs one day behind.
"""

from __future__ import annotations

import json
import logging
import re
import time
import xml.etree.ElementTree as ET
from dataclasses import asdict, dataclass
from datetime import date, datetime, time as dt_time, timedelta, timezone
from typing import Callable, List, Optional, Tuple

import httpx

from .errors import DownloadFailure
from .naming import Category, object_name
from .net import get_with_retries
from .settings import HttpSettings
from .storage import ObjectStore

__all__ = [
    "HAPPENINGS_URL_TEMPLATE",
    "Founding",
    "happenings_url",
    "parse_happenings",
    "fetch_foundings",
    "day_bounds",
    "collect_foundings",
]

LOGGER = logging.getLogger("NSArchive.foundings")

HAPPENINGS_URL_TEMPLATE = (
    "https://www.nationstates.net/cgi-bin/api.cgi?q=happenings;filter=founding;limit=100;"
    "sincetime={since};beforetime={before};sinceid={since_id};beforeid={before_id};"
)

_NATION_RE = re.compile(r"@@(.+?)@@")
_REGION_RE = re.compile(r"%%(.+?)%%")


@dataclass(frozen=True)
class Founding:
    """One founding event, as archived."""

    id: int
    timestamp: int
    nation: str
    region: str

    @classmethod
    def from_event(cls, event_id: int, timestamp: int, text: str) -> "Founding":
        nation = _NATION_RE.search(text)
        region = _REGION_RE.search(text)
        return cls(
            id=event_id,
            timestamp=timestamp,
            nation=nation.group(1) if nation else "",
            region=region.group(1) if region else "",
        )


def happenings_url(since: int, before: int, since_id: str = "", before_id: str = "") -> str:
    return HAPPENINGS_URL_TEMPLATE.format(
        since=since, before=before, since_id=since_id, before_id=before_id
    )


def parse_happenings(payload: bytes) -> List[Founding]:
    """Parse a ``<WORLD><HAPPENINGS>`` response into foundings, in response order."""

    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise DownloadFailure(f"invalid happenings response: {exc}") from exc

    foundings: List[Founding] = []
    for event in root.iterfind("./HAPPENINGS/EVENT"):
        try:
            event_id = int(event.get("id", ""))
            timestamp = int(event.findtext("TIMESTAMP", default=""))
        except ValueError as exc:
            raise DownloadFailure(f"invalid happenings event: {exc}") from exc
        foundings.append(Founding.from_event(event_id, timestamp, event.findtext("TEXT", "")))
    return foundings


def fetch_foundings(
    client: httpx.Client,
    since: datetime,
    before: datetime,
    *,
    settings: Optional[HttpSettings] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Founding]:
    """Return every founding between ``since`` and ``before``, newest first."""

    settings = settings or HttpSettings()
    since_ts, before_ts = int(since.timestamp()), int(before.timestamp())
    foundings: List[Founding] = []
    before_id = ""
    while True:
        if before_id:
            LOGGER.debug("checking for events prior to event %s", before_id, extra={"stage": "foundings"})
        url = happenings_url(since_ts, before_ts, before_id=before_id)
        page = parse_happenings(get_with_retries(client, url, settings=settings).content)
        if not page:
            break
        foundings.extend(page)
        before_id = str(page[-1].id)
        sleep(settings.page_delay_sec)
    return foundings


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Return the UTC midnight bounds ``[day, day + 1)``."""

    start = datetime.combine(day, dt_time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def collect_foundings(
    client: httpx.Client,
    store: ObjectStore,
    *,
    day: Optional[date] = None,
    settings: Optional[HttpSettings] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Archive the foundings of ``day`` (yesterday, UTC, by default).

    Returns:
        str: Object name the JSON array was stored under.
    """

    day = day or (datetime.now(timezone.utc).date() - timedelta(days=1))
    since, before = day_bounds(day)
    foundings = fetch_foundings(client, since, before, settings=settings, sleep=sleep)
    LOGGER.info(
        "collected %d foundings for %s", len(foundings), day.isoformat(), extra={"stage": "foundings"}
    )
    payload = json.dumps([asdict(founding) for founding in foundings]).encode("utf-8")
    name = object_name(Category.FOUNDINGS, day)
    store.put(name, payload, content_type="application/json")
    return name

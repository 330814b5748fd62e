# === NAVMAP v1 ===
# {
#   "module": "NSArchive.naming",
#   "purpose": "Category definitions, object-name templates, and strict date parsing for stored dumps",
#   "sections": [
#     {"id": "category", "name": "Category", "anchor": "class-category", "kind": "class"},
#     {"id": "objectrecord", "name": "ObjectRecord", "anchor": "class-objectrecord", "kind": "class"},
#     {"id": "object-name", "name": "object_name", "anchor": "function-object-name", "kind": "function"},
#     {"id": "derive-url", "name": "derive_url", "anchor": "function-derive-url", "kind": "function"},
#     {"id": "parse-object-name", "name": "parse_object_name", "anchor": "function-parse-object-name", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Object naming conventions for the archive bucket.

Every stored object follows exactly one template per category::

    nations/YYYY-MM-DD-nations.xml.gz
    regions/YYYY-MM-DD-regions.xml.gz
    foundings/YYYY-MM-DD-foundings.json

The date always sits directly after the category prefix, so parsing is a
fixed-width slice followed by a strict ``%Y-%m-%d`` parse. The category is
never inferred from the name; callers pass the category of the listing the
name came from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .errors import MalformedRecordName

__all__ = [
    "Category",
    "CATEGORY_ORDER",
    "DATE_FORMAT",
    "DEFAULT_URL_TEMPLATE",
    "ObjectRecord",
    "object_name",
    "derive_url",
    "parse_object_name",
]

DATE_FORMAT = "%Y-%m-%d"
_DATE_WIDTH = len("YYYY-MM-DD")
_DATE_SHAPE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

DEFAULT_URL_TEMPLATE = "file/nsarchive/{name}"


class Category(str, Enum):
    """Dataset kinds tracked by the archive."""

    NATIONS = "nations"
    REGIONS = "regions"
    FOUNDINGS = "foundings"

    @property
    def prefix(self) -> str:
        """Storage prefix under which objects of this category live."""

        return f"{self.value}/"

    @property
    def suffix(self) -> str:
        """Literal tail that follows the date in the object name."""

        if self is Category.FOUNDINGS:
            return f"-{self.value}.json"
        return f"-{self.value}.xml.gz"

    @property
    def template(self) -> str:
        return f"{self.prefix}YYYY-MM-DD{self.suffix}"

    @property
    def date_offset(self) -> int:
        return len(self.prefix)


CATEGORY_ORDER = (Category.NATIONS, Category.REGIONS, Category.FOUNDINGS)


@dataclass(frozen=True)
class ObjectRecord:
    """A stored object resolved to its category, calendar date, and public URL."""

    name: str
    category: Category
    date: date
    url: str
    size: Optional[int] = None
    sha1: Optional[str] = None


def object_name(category: Category, day: date) -> str:
    """Return the storage object name for ``category`` on ``day``."""

    return f"{category.prefix}{day.strftime(DATE_FORMAT)}{category.suffix}"


def derive_url(name: str, template: str = DEFAULT_URL_TEMPLATE) -> str:
    """Substitute an object name into the public URL template."""

    return template.format(name=name)


def _parse_date(name: str, category: Category) -> date:
    expected_length = category.date_offset + _DATE_WIDTH + len(category.suffix)
    if not name.startswith(category.prefix):
        raise MalformedRecordName(
            name, category.value, f"expected prefix {category.prefix!r}"
        )
    if not name.endswith(category.suffix) or len(name) != expected_length:
        raise MalformedRecordName(name, category.value, f"expected {category.template!r}")

    raw = name[category.date_offset : category.date_offset + _DATE_WIDTH]
    # strptime tolerates unpadded fields and non-ASCII digits; the template does not.
    if not _DATE_SHAPE.fullmatch(raw):
        raise MalformedRecordName(name, category.value, f"invalid date {raw!r}")
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except ValueError as exc:
        raise MalformedRecordName(name, category.value, f"invalid date {raw!r}") from exc


def parse_object_name(
    name: str,
    category: Category,
    *,
    url: Optional[str] = None,
    url_template: str = DEFAULT_URL_TEMPLATE,
    size: Optional[int] = None,
    sha1: Optional[str] = None,
) -> ObjectRecord:
    """Parse ``name`` against the template for ``category``.

    Args:
        name: Storage object name, relative to the bucket root.
        category: Category of the listing that produced ``name``.
        url: Pre-resolved public URL; derived from ``url_template`` when omitted.
        url_template: Template used to derive the URL (``{name}`` placeholder).
        size: Object size in bytes, when the listing reports it.
        sha1: Hex SHA1 digest, when the listing reports it.

    Returns:
        ObjectRecord: Parsed record with the resolved URL.

    Raises:
        MalformedRecordName: If the name deviates from the category template or
            does not embed a valid calendar date.
    """

    parsed = _parse_date(name, category)
    return ObjectRecord(
        name=name,
        category=category,
        date=parsed,
        url=url if url is not None else derive_url(name, url_template),
        size=size,
        sha1=sha1,
    )

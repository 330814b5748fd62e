"""Render a stabilized :class:`~NSArchive.catalog.Catalog` into ``index.html``.

The output is a pure function of the catalog: no timestamps, no mapping
iteration, and a fixed category order, so identical catalogs produce
byte-identical pages.
"""

from __future__ import annotations

from html import escape
from typing import List, Optional

from .catalog import Catalog, DayNode, MonthNode, YearNode
from .naming import Category, ObjectRecord

__all__ = [
    "CONTENT_TYPE",
    "DEFAULT_TITLE",
    "DEFAULT_INTRO",
    "MONTH_NAMES",
    "month_name",
    "format_size",
    "render",
]

CONTENT_TYPE = "text/html; charset=utf-8"

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

DEFAULT_TITLE = "NSArchive"

DEFAULT_INTRO = (
    "NSArchive is a collection of daily snapshots of "
    '<a href="https://www.nationstates.net">NationStates</a> data. NationStates produces two '
    'daily dumps, <a href="https://www.nationstates.net/pages/api.html#dumps">Nations and '
    "Regions</a>, which are archived here, and founding data is collected from the "
    '<a href="https://www.nationstates.net/pages/api.html#worldapi">World API</a>. Founding '
    "data is based on UTC time and is always one day behind."
)

_STYLE = """
body { font-family: Helvetica, sans-serif; }
.year { font-size: 2em; font-weight: bold; cursor: pointer; }
.month { font-size: 1.5em; font-weight: bold; cursor: pointer; }
h4 { margin: 5px 20px; }
details { margin-left: 20px; }
summary { font-weight: bold; cursor: pointer; }
ul { margin: 5px 20px; }
"""

_SIZE_UNITS = "kMGTPE"


def month_name(month: int) -> str:
    """Return the English name for a 1-indexed month number."""

    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    return MONTH_NAMES[month - 1]


def format_size(size: int) -> str:
    """Format a byte count with decimal units (``1.5 MB``)."""

    unit = 1000
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {_SIZE_UNITS[exp]}B"


def _render_item(category: Category, record: ObjectRecord) -> str:
    download = " download" if category is Category.FOUNDINGS else ""
    parts = [f'<li><a href="{escape(record.url)}"{download}>{category.value}</a>']
    if record.size is not None:
        parts.append(f" ({format_size(record.size)})")
    if record.sha1:
        parts.append(f" <br> SHA1: <code>{escape(record.sha1)}</code>")
    parts.append("</li>")
    return "".join(parts)


def _render_day(year: YearNode, month: MonthNode, day: DayNode) -> Optional[str]:
    entries = day.populated()
    if not entries:
        return None
    items = "".join(_render_item(category, record) for category, record in entries)
    return f"<h4>{year.year:04d}-{month.month:02d}-{day.day:02d}</h4><ul>{items}</ul>"


def _render_month(year: YearNode, month: MonthNode) -> Optional[str]:
    days = [chunk for chunk in (_render_day(year, month, day) for day in month.days) if chunk]
    if not days:
        return None
    summary = f'<summary class="month">{month_name(month.month)}</summary>'
    return f"<details>{summary}{''.join(days)}</details>"


def _render_year(year: YearNode) -> Optional[str]:
    months = [chunk for chunk in (_render_month(year, month) for month in year.months) if chunk]
    if not months:
        return None
    return f'<details><summary class="year">{year.year}</summary>{"".join(months)}</details>'


def render(
    catalog: Catalog,
    *,
    title: str = DEFAULT_TITLE,
    intro: str = DEFAULT_INTRO,
) -> bytes:
    """Serialize ``catalog`` to a self-contained HTML page.

    Args:
        catalog: Stabilized catalog; traversal follows its stored order.
        title: Page title and top-level heading (escaped).
        intro: Intro paragraph body. Trusted HTML, inserted verbatim.

    Returns:
        bytes: UTF-8 encoded document.
    """

    buffer: List[str] = [
        f"<html><head><title>{escape(title)}</title><style>{_STYLE}</style></head><body>",
        f"<h1>{escape(title)}</h1>",
        f"<p>{intro}</p>",
    ]
    for year in catalog.years:
        chunk = _render_year(year)
        if chunk:
            buffer.append(chunk)
    buffer.append("</body></html>")
    return "".join(buffer).encode("utf-8")

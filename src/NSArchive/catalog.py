# === NAVMAP v1 ===
# {
#   "module": "NSArchive.catalog",
#   "purpose": "Aggregate stored-object records into an ordered Year -> Month -> Day catalog",
#   "sections": [
#     {"id": "daynode", "name": "DayNode", "anchor": "class-daynode", "kind": "class"},
#     {"id": "monthnode", "name": "MonthNode", "anchor": "class-monthnode", "kind": "class"},
#     {"id": "yearnode", "name": "YearNode", "anchor": "class-yearnode", "kind": "class"},
#     {"id": "catalog", "name": "Catalog", "anchor": "class-catalog", "kind": "class"},
#     {"id": "build", "name": "build", "anchor": "function-build", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""In-memory catalog of everything stored in the archive bucket.

The catalog is a three level tree. Each level keeps its children in a list
(display order) plus a key -> index map used while aggregating, so lookups
stay constant time and rendering never depends on mapping iteration order.
Children are appended in arrival order; :meth:`Catalog.stabilize` sorts every
level and rebuilds the index maps. :func:`build` always stabilizes, because
the per-category listings are merged and do not arrive in date order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .naming import CATEGORY_ORDER, Category, ObjectRecord

__all__ = ["DayNode", "MonthNode", "YearNode", "Catalog", "build"]

LOGGER = logging.getLogger("NSArchive.catalog")


@dataclass
class DayNode:
    """Per-day slots, one optional record per category."""

    day: int
    slots: Dict[Category, Optional[ObjectRecord]] = field(
        default_factory=lambda: {category: None for category in CATEGORY_ORDER}
    )

    def set(self, record: ObjectRecord) -> bool:
        """Store ``record`` in its category slot, returning ``True`` on overwrite."""

        previous = self.slots.get(record.category)
        self.slots[record.category] = record
        return previous is not None

    def populated(self) -> List[Tuple[Category, ObjectRecord]]:
        """Return populated slots in the fixed category order."""

        entries = []
        for category in CATEGORY_ORDER:
            record = self.slots.get(category)
            if record is not None:
                entries.append((category, record))
        return entries

    def is_empty(self) -> bool:
        return not self.populated()


@dataclass
class MonthNode:
    month: int
    days: List[DayNode] = field(default_factory=list)
    _index: Dict[int, int] = field(default_factory=dict, repr=False, compare=False)

    def day(self, number: int) -> DayNode:
        """Return the node for ``number``, creating it on first use."""

        position = self._index.get(number)
        if position is None:
            position = len(self.days)
            self.days.append(DayNode(day=number))
            self._index[number] = position
        return self.days[position]

    def stabilize(self) -> None:
        self.days.sort(key=lambda node: node.day)
        self._index = {node.day: position for position, node in enumerate(self.days)}


@dataclass
class YearNode:
    year: int
    months: List[MonthNode] = field(default_factory=list)
    _index: Dict[int, int] = field(default_factory=dict, repr=False, compare=False)

    def month(self, number: int) -> MonthNode:
        """Return the node for ``number``, creating it on first use."""

        position = self._index.get(number)
        if position is None:
            position = len(self.months)
            self.months.append(MonthNode(month=number))
            self._index[number] = position
        return self.months[position]

    def stabilize(self) -> None:
        for month in self.months:
            month.stabilize()
        self.months.sort(key=lambda node: node.month)
        self._index = {node.month: position for position, node in enumerate(self.months)}


@dataclass
class Catalog:
    """Ordered Year -> Month -> Day tree of archived objects.

    Attributes:
        years: Year nodes in display order (ascending once stabilized).
        overwritten: Number of slots replaced by a later record for the same
            ``(date, category)`` pair. Last write wins; the count is purely
            informational and is left out of equality.
    """

    years: List[YearNode] = field(default_factory=list)
    overwritten: int = field(default=0, compare=False)
    _index: Dict[int, int] = field(default_factory=dict, repr=False, compare=False)

    def year(self, number: int) -> YearNode:
        """Return the node for ``number``, creating it on first use."""

        position = self._index.get(number)
        if position is None:
            position = len(self.years)
            self.years.append(YearNode(year=number))
            self._index[number] = position
        return self.years[position]

    def add(self, record: ObjectRecord) -> None:
        """Place ``record`` in the slot for its date and category."""

        day = self.year(record.date.year).month(record.date.month).day(record.date.day)
        if day.set(record):
            self.overwritten += 1
            LOGGER.debug(
                "replaced %s slot for %s with %s",
                record.category.value,
                record.date.isoformat(),
                record.name,
                extra={"stage": "catalog"},
            )

    def stabilize(self) -> None:
        """Sort days within months, months within years, and years."""

        for year in self.years:
            year.stabilize()
        self.years.sort(key=lambda node: node.year)
        self._index = {node.year: position for position, node in enumerate(self.years)}

    def records(self) -> Iterator[ObjectRecord]:
        """Yield populated slots in catalog order."""

        for year in self.years:
            for month in year.months:
                for day in month.days:
                    for _, record in day.populated():
                        yield record

    def __len__(self) -> int:
        return sum(1 for _ in self.records())


def build(records: Iterable[ObjectRecord], catalog: Optional[Catalog] = None) -> Catalog:
    """Aggregate ``records`` into ``catalog`` (or a fresh one) and stabilize it.

    Calling ``build`` repeatedly against the same accumulator is equivalent to
    a single call over the concatenated inputs.
    """

    target = catalog if catalog is not None else Catalog()
    for record in records:
        target.add(record)
    target.stabilize()
    return target

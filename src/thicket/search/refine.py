"""Date-range filtering and re-sorting applied after search."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from datetime import datetime

from ..core.model import Note
from ..core.utils import collation_key


class SortKey(str, enum.Enum):
    RELEVANCE = "relevance"
    CREATED = "date"
    UPDATED = "updated"
    TITLE = "title"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


_STAMPS = {
    SortKey.CREATED: lambda n: n.created_at,
    SortKey.UPDATED: lambda n: n.updated_at,
}


def _epoch(ts: datetime | None) -> float:
    return ts.timestamp() if ts is not None else float("-inf")


def filter_by_date_range(
    notes: Sequence[Note], start: datetime | None = None, end: datetime | None = None
) -> list[Note]:
    """
    Notes created within [start, end]. A missing bound is open.

    Naive bounds are read as local time.
    """
    lo = _epoch(start)
    hi = _epoch(end) if end is not None else float("inf")
    return [
        n for n in notes if n.created_at is not None and lo <= _epoch(n.created_at) <= hi
    ]


def sort_notes(
    notes: Sequence[Note],
    by: SortKey | str = SortKey.RELEVANCE,
    order: SortOrder | str = SortOrder.DESC,
) -> list[Note]:
    """
    Re-sort search results. Relevance keeps the incoming order whatever the
    direction; the other keys sort stably, so equal keys keep it too.
    """
    by = SortKey(by)
    order = SortOrder(order)
    if by is SortKey.RELEVANCE:
        return list(notes)
    reverse = order is SortOrder.DESC
    if by is SortKey.TITLE:
        return sorted(notes, key=lambda n: collation_key(n.title), reverse=reverse)
    stamp = _STAMPS[by]
    return sorted(notes, key=lambda n: _epoch(stamp(n)), reverse=reverse)


def refine(
    notes: Sequence[Note],
    start: datetime | None = None,
    end: datetime | None = None,
    by: SortKey | str = SortKey.RELEVANCE,
    order: SortOrder | str = SortOrder.DESC,
) -> list[Note]:
    return sort_notes(filter_by_date_range(notes, start, end), by, order)

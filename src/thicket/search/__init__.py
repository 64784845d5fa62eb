"""Fuzzy search, tag filtering and result refinement."""

from .engine import SearchEngine, SearchState
from .fuzzy import FuzzyIndex, SearchHit
from .refine import SortKey, SortOrder, filter_by_date_range, refine, sort_notes

__all__ = [
    "SearchEngine",
    "SearchState",
    "FuzzyIndex",
    "SearchHit",
    "SortKey",
    "SortOrder",
    "filter_by_date_range",
    "sort_notes",
    "refine",
]

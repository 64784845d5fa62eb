"""Stateful search session: query, tag filters and query history."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..core.model import Note
from ..core.tags import all_tags, compute_tag_counts
from .fuzzy import DEFAULT_KEYS, DEFAULT_THRESHOLD, FuzzyIndex, SearchHit

MAX_HISTORY = 10
MAX_SUGGESTIONS = 5

TAG_SHORTHAND_RE = re.compile(r"(?<!\S)#([^\s#]+)")


@dataclass
class SearchState:
    query: str = ""
    selected_tags: list[str] = field(default_factory=list)
    history: list[str] = field(default_factory=list)


def split_query(query: str) -> tuple[str, list[str]]:
    """
    Separate `#tag` shorthand from free text.

        >>> split_query("graph #work ideas")
        ('graph ideas', ['work'])
    """
    tags = TAG_SHORTHAND_RE.findall(query)
    text = " ".join(TAG_SHORTHAND_RE.sub(" ", query).split())
    return text, tags


def has_all_tags(note: Note, tags: Sequence[str]) -> bool:
    own = {t.lower() for t in note.tags}
    return all(t.lower() in own for t in tags)


class SearchEngine:
    def __init__(
        self,
        notes: Sequence[Note] = (),
        threshold: float = DEFAULT_THRESHOLD,
        keys: Sequence[str] = DEFAULT_KEYS,
        max_history: int = MAX_HISTORY,
    ):
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.max_history = max_history
        self.state = SearchState()
        self._notes: list[Note] = list(notes)
        self._threshold = threshold
        self._keys = tuple(keys)
        self._index = FuzzyIndex(self._notes, self._keys, self._threshold)
        self._cached: tuple[tuple[str, tuple[str, ...]], list[Note]] | None = None

    # Index maintenance
    def _rebuild(self) -> None:
        self._index = FuzzyIndex(self._notes, self._keys, self._threshold)
        self._cached = None

    @property
    def notes(self) -> list[Note]:
        return list(self._notes)

    def set_notes(self, notes: Sequence[Note]) -> None:
        self._notes = list(notes)
        self._rebuild()

    @property
    def threshold(self) -> float:
        return self._threshold

    def set_threshold(self, threshold: float) -> None:
        if threshold != self._threshold:
            self._threshold = threshold
            self._rebuild()

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys

    def set_keys(self, keys: Sequence[str]) -> None:
        if tuple(keys) != self._keys:
            self._keys = tuple(keys)
            self._rebuild()

    # State
    @property
    def query(self) -> str:
        return self.state.query

    @property
    def selected_tags(self) -> list[str]:
        return list(self.state.selected_tags)

    @property
    def history(self) -> list[str]:
        return list(self.state.history)

    def set_query(self, text: str) -> None:
        self.state.query = text

    def select_tag(self, tag: str) -> None:
        if tag.lower() not in (t.lower() for t in self.state.selected_tags):
            self.state.selected_tags.append(tag)

    def remove_tag(self, tag: str) -> None:
        self.state.selected_tags = [
            t for t in self.state.selected_tags if t.lower() != tag.lower()
        ]

    def clear_all(self) -> None:
        self.state.query = ""
        self.state.selected_tags = []

    def add_to_history(self, query: str) -> None:
        if not query.strip():
            return
        rest = [h for h in self.state.history if h != query]
        self.state.history = [query, *rest][: self.max_history]

    def select_from_history(self, query: str) -> None:
        self.state.query = query
        self.add_to_history(query)

    @property
    def has_active_filters(self) -> bool:
        return bool(self.state.query.strip()) or bool(self.state.selected_tags)

    # Results
    def hits(self) -> list[SearchHit]:
        """Fuzzy hits for the free-text part of the query, before tag filtering."""
        text, _ = split_query(self.state.query)
        return self._index.search(text)

    def results(self) -> list[Note]:
        """
        Notes matching the current query and tag selection.

        - free text: fuzzy matched over the indexed keys, best match first
        - selected tags and `#tag` shorthand: every tag must be present
        - nothing active: the whole collection, in collection order

        The result is kept until the query, the tags or the index change.
        """
        key = (self.state.query, tuple(self.state.selected_tags))
        if self._cached is None or self._cached[0] != key:
            text, shorthand = split_query(self.state.query)
            if text:
                notes = [hit.note for hit in self._index.search(text)]
            else:
                notes = list(self._notes)
            tags = self.state.selected_tags + shorthand
            if tags:
                notes = [n for n in notes if has_all_tags(n, tags)]
            self._cached = (key, notes)
        return list(self._cached[1])

    @property
    def result_count(self) -> int:
        return len(self.results())

    @property
    def has_results(self) -> bool:
        return self.result_count > 0

    @property
    def is_empty(self) -> bool:
        return not self._notes

    # Tag helpers
    def all_tags(self) -> list[str]:
        return all_tags(self._notes)

    def get_popular_tags(self, limit: int = 10) -> list[str]:
        """Most used tags across the whole collection, not just the results."""
        return [tc.tag for tc in compute_tag_counts(self._notes)[:limit]]

    def get_search_suggestions(self, text: str, limit: int = MAX_SUGGESTIONS) -> list[str]:
        """
        Titles and `#tags` containing `text`.

        If `text` contains '#', only the part after the last '#' is used and
        only tags are suggested.
        """
        if not text.strip():
            return []
        suggestions: list[str] = []
        if "#" in text:
            needle = text.rsplit("#", 1)[1].strip().lower()
            for tag in self.all_tags():
                if needle in tag.lower():
                    suggestions.append(f"#{tag}")
            return suggestions[:limit]

        needle = text.strip().lower()
        for note in self._notes:
            if needle in note.title.lower() and note.title not in suggestions:
                suggestions.append(note.title)
        for tag in self.all_tags():
            if needle in tag.lower():
                suggestions.append(f"#{tag}")
        return suggestions[:limit]

"""Derived state kept in step with a note store."""

from __future__ import annotations

from collections.abc import Callable

from .core.backlinks import find_backlinks
from .core.graph import build_graph
from .core.links import ReferenceScan, parse_references
from .core.model import Graph, Note, TagCount
from .core.store import NoteStore
from .core.tags import compute_tag_counts
from .search.engine import SearchEngine


class Garden:
    """
    Search index, graph and tag counts for the notes in a store.

    The search index is rebuilt on every store change; the graph and the tag
    counts are recomputed the next time they are asked for. None of this
    state is ever written back to the store.
    """

    def __init__(self, store: NoteStore, search: SearchEngine | None = None):
        self.store = store
        self.search = search or SearchEngine()
        self._graph: Graph | None = None
        self._tag_counts: list[TagCount] | None = None
        self.search.set_notes(store.notes)
        self._unsubscribe: Callable[[], None] | None = store.subscribe(self._on_change)

    def _on_change(self, notes: list[Note]) -> None:
        self.search.set_notes(notes)
        self._graph = None
        self._tag_counts = None

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def notes(self) -> list[Note]:
        return self.store.notes

    @property
    def graph(self) -> Graph:
        if self._graph is None:
            self._graph = build_graph(self.store.notes)
        return self._graph

    @property
    def tag_counts(self) -> list[TagCount]:
        if self._tag_counts is None:
            self._tag_counts = compute_tag_counts(self.store.notes)
        return self._tag_counts

    def backlinks(self, note: Note) -> list[Note]:
        return find_backlinks(note, self.store.notes)

    def references(self, note: Note) -> ReferenceScan:
        return parse_references(note.content, self.store.notes)

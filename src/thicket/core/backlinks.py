"""Backlink discovery: which notes reference a given note."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .links import LINK_RE, extract_plain_links
from .model import Note, Range
from .utils import title_key


def references_title(note: Note, title: str) -> bool:
    key = title_key(title)
    if not key:
        return False
    return any(title_key(t) == key for t in extract_plain_links(note.content))


def _updated_key(note: Note) -> float:
    return note.updated_at.timestamp() if note.updated_at else float("-inf")


def find_backlinks(target: Note, all_notes: Sequence[Note]) -> list[Note]:
    """
    Notes whose content references `target` by title.

    The target itself is never part of the result. Results are ordered by
    `updated_at`, most recent first; notes with equal timestamps keep their
    collection order.
    """
    hits = [
        note
        for note in all_notes
        if note.id != target.id and references_title(note, target.title)
    ]
    return sorted(hits, key=_updated_key, reverse=True)


@dataclass
class BacklinkContext:
    source: Note
    range: Range
    context: str


def backlink_contexts(
    target: Note, all_notes: Sequence[Note], context: int = 2
) -> list[BacklinkContext]:
    """Each reference to `target` with `context` lines around it."""
    key = title_key(target.title)
    out: list[BacklinkContext] = []
    if not key:
        return out
    for note in find_backlinks(target, all_notes):
        all_lines = note.content.splitlines()
        for m in LINK_RE.finditer(note.content):
            if title_key(m.group(1)) != key:
                continue
            line_no = note.content.count("\n", 0, m.start())
            start_line = max(0, line_no - context)
            end_line = line_no + context + 1
            out.append(
                BacklinkContext(
                    source=note,
                    range=Range(m.start(), m.end()),
                    context="\n".join(all_lines[start_line:end_line]),
                )
            )
    return out

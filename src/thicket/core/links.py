"""Inline [[Title]] reference parsing."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from .model import Note, NoteId, Range, ReferenceToken
from .utils import title_key

LINK_RE = re.compile(r"\[\[([^\]]*?)\]\]")


class TitleLookup:
    """
    Case-insensitive title -> note map.

    When several notes share a title the first one in collection order wins.
    """

    def __init__(self, notes: Iterable[Note] = ()):
        self._by_title: dict[str, Note] = {}
        for note in notes:
            self._by_title.setdefault(title_key(note.title), note)

    def get(self, title: str) -> Note | None:
        return self._by_title.get(title_key(title))

    def resolve(self, title: str) -> NoteId | None:
        note = self.get(title)
        return note.id if note else None

    def __contains__(self, title: object) -> bool:
        return isinstance(title, str) and title_key(title) in self._by_title

    def __len__(self) -> int:
        return len(self._by_title)


class ReferenceScan:
    """
    Lazy view over the references in a piece of text.

    Each iteration scans the text again, so the scan can be consumed any
    number of times and always yields the same tokens in text order.
    """

    def __init__(self, text: str, lookup: TitleLookup):
        self.text = text
        self.lookup = lookup

    def __iter__(self) -> Iterator[ReferenceToken]:
        for m in LINK_RE.finditer(self.text):
            title = m.group(1).strip()
            yield ReferenceToken(
                raw_text=title,
                resolved_note_id=self.lookup.resolve(title) if title else None,
                range=Range(m.start(), m.end()),
            )

    def resolved(self) -> list[ReferenceToken]:
        return [t for t in self if t.exists]

    def missing(self) -> list[ReferenceToken]:
        return [t for t in self if not t.exists]


def parse_references(
    text: str, notes: Iterable[Note] | TitleLookup = ()
) -> ReferenceScan:
    """Parse `text` for references, resolving titles against `notes`."""
    lookup = notes if isinstance(notes, TitleLookup) else TitleLookup(notes)
    return ReferenceScan(text, lookup)


def extract_plain_links(text: str) -> list[str]:
    """Trimmed titles of every reference in `text`, duplicates kept."""
    return [m.group(1).strip() for m in LINK_RE.finditer(text)]


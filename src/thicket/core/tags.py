"""Tag frequency counts across a note collection."""

from collections import Counter
from collections.abc import Iterable

from .model import Note, TagCount


def compute_tag_counts(notes: Iterable[Note]) -> list[TagCount]:
    """
    Count how many notes carry each tag.

    Sorted by count, highest first; tags with the same count keep the order
    in which they were first seen.
    """
    counts: Counter[str] = Counter()
    for note in notes:
        # a tag listed twice on one note still counts once
        counts.update(dict.fromkeys(note.tags, 1))
    # Counter keeps first-insertion order and sorted() is stable
    ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [TagCount(tag, count) for tag, count in ordered]


def all_tags(notes: Iterable[Note]) -> list[str]:
    """Every distinct tag, alphabetically."""
    return sorted({tag for note in notes for tag in note.tags})

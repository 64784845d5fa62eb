"""
Approximate substring matching over note fields.

A pattern matches a field when some substring of the field can be turned
into the pattern with at most `threshold * len(pattern)` single-character
edits. The score of a match is errors / len(pattern): 0 is exact, 1 is as
loose as it gets. Matching ignores case and position.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from ..core.model import Note

log = logging.getLogger(__name__)

Accessor = Callable[[Note], str]

ACCESSORS: dict[str, Accessor] = {
    "title": lambda note: note.title,
    "content": lambda note: note.content,
    "tags": lambda note: " ".join(note.tags),
}

DEFAULT_KEYS = ("title", "content", "tags")
DEFAULT_THRESHOLD = 0.3
MAX_PATTERN_LENGTH = 32


@dataclass(frozen=True)
class MatchRegion:
    start: int
    end: int
    errors: int


@dataclass(frozen=True)
class FieldMatch:
    key: str
    score: float
    regions: tuple[MatchRegion, ...]


@dataclass
class SearchHit:
    note: Note
    score: float
    matches: list[FieldMatch] = field(default_factory=list)
    ref_index: int = 0  # position in the indexed collection


def find_exact(pattern: str, text: str) -> list[MatchRegion]:
    """Every occurrence of `pattern` in `text`, overlapping ones merged."""
    hits = []
    pos = text.find(pattern)
    while pos != -1:
        hits.append(MatchRegion(pos, pos + len(pattern), 0))
        pos = text.find(pattern, pos + 1)
    return _merge(hits)


def pieces(pattern: str, count: int) -> list[str]:
    """
    Split `pattern` into `count` contiguous, nearly equal pieces.

        >>> pieces("abcdefg", 3)
        ['abc', 'de', 'fg']
    """
    size, extra = divmod(len(pattern), count)
    out = []
    pos = 0
    for n in range(count):
        end = pos + size + (1 if n < extra else 0)
        out.append(pattern[pos:end])
        pos = end
    return out


def candidate_windows(pattern: str, text: str, max_errors: int) -> list[tuple[int, int]]:
    """
    Spans of `text` that can hold a match, overlapping spans joined.

    With at most k edits, one of k + 1 pieces of the pattern appears in the
    match unchanged. Each occurrence of a piece bounds where such a match
    can start and end.
    """
    m = len(pattern)
    if max_errors + 1 > m:
        return [(0, len(text))] if text else []
    spans = []
    offset = 0
    for piece in pieces(pattern, max_errors + 1):
        pos = text.find(piece)
        while pos != -1:
            lo = max(0, pos - offset - max_errors)
            hi = min(len(text), pos - offset + m + max_errors)
            spans.append((lo, hi))
            pos = text.find(piece, pos + 1)
        offset += len(piece)
    joined: list[tuple[int, int]] = []
    for lo, hi in sorted(spans):
        if joined and lo <= joined[-1][1]:
            joined[-1] = (joined[-1][0], max(joined[-1][1], hi))
        else:
            joined.append((lo, hi))
    return joined


def _sellers(pattern: str, text: str, max_errors: int, base: int = 0) -> list[MatchRegion]:
    # Only rows up to the last one within max_errors are computed (Ukkonen's
    # cutoff); the cells below it are held at max_errors + 1.
    m = len(pattern)
    over = max_errors + 1
    cost = [min(i, over) for i in range(m + 1)]
    start = [0] * (m + 1)
    last_active = min(max_errors, m)
    hits: list[MatchRegion] = []

    for j, ch in enumerate(text, 1):
        prev_cost, prev_start = cost, start
        cost = [over] * (m + 1)
        cost[0] = 0
        start = [j] * (m + 1)
        top = min(last_active + 1, m)
        for i in range(1, top + 1):
            best = prev_cost[i - 1] + (pattern[i - 1] != ch)
            best_start = prev_start[i - 1]
            if prev_cost[i] + 1 < best:
                best = prev_cost[i] + 1
                best_start = prev_start[i]
            if cost[i - 1] + 1 < best:
                best = cost[i - 1] + 1
                best_start = start[i - 1]
            cost[i] = min(best, over)
            start[i] = best_start
        last_active = top
        while cost[last_active] > max_errors:
            last_active -= 1
        if last_active == m and start[m] < j:
            hits.append(MatchRegion(base + start[m], base + j, cost[m]))

    return hits


def find_approximate(pattern: str, text: str, max_errors: int) -> list[MatchRegion]:
    """
    Every region of `text` that matches `pattern` within `max_errors` edits.

    Dynamic programming with a free starting point (Sellers' algorithm), run
    only over the candidate windows of the text. Each cell also tracks where
    its alignment started so the matched substring can be reported.
    Overlapping hits are merged into one region carrying the lowest error
    count.
    """
    if not pattern:
        return []
    if max_errors <= 0:
        return find_exact(pattern, text)
    hits: list[MatchRegion] = []
    for lo, hi in candidate_windows(pattern, text, max_errors):
        hits.extend(_sellers(pattern, text[lo:hi], max_errors, base=lo))
    return _merge(hits)



    return _merge(hits)


def _merge(hits: Iterable[MatchRegion]) -> list[MatchRegion]:
    merged: list[MatchRegion] = []
    for hit in sorted(hits, key=lambda h: (h.start, h.end)):
        if merged and hit.start < merged[-1].end:
            last = merged[-1]
            merged[-1] = MatchRegion(
                last.start, max(last.end, hit.end), min(last.errors, hit.errors)
            )
        else:
            merged.append(hit)
    return merged


def match_field(key: str, pattern: str, text: str, threshold: float) -> FieldMatch | None:
    """Match an already lowercased pattern against one field value."""
    max_errors = int(threshold * len(pattern))
    regions = find_approximate(pattern, text.lower(), max_errors)
    if not regions:
        return None
    errors = min(r.errors for r in regions)
    return FieldMatch(key=key, score=errors / len(pattern), regions=tuple(regions))


class FuzzyIndex:
    """
    Field values extracted once per collection, searched per query.

    Rebuild (construct a new index) whenever the notes, the keys or the
    threshold change.
    """

    def __init__(
        self,
        notes: Sequence[Note],
        keys: Sequence[str] = DEFAULT_KEYS,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        unknown = [k for k in keys if k not in ACCESSORS]
        if unknown:
            raise ValueError(f"Unknown search keys: {', '.join(unknown)}")
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Threshold must be between 0 and 1, got {threshold}")
        self.keys = tuple(keys)
        self.threshold = threshold
        self._records = [
            (note, {key: ACCESSORS[key](note) for key in self.keys}) for note in notes
        ]
        log.debug(
            "Built search index: %d notes, keys=%s, threshold=%s",
            len(self._records),
            ",".join(self.keys),
            threshold,
        )

    def __len__(self) -> int:
        return len(self._records)

    def search(self, query: str) -> list[SearchHit]:
        """
        Notes matching `query` in at least one key, best match first.

        Ranking: lowest score, then the number of keys that matched, then
        collection order.
        Only the first MAX_PATTERN_LENGTH characters of the query are used.
        """
        pattern = query.strip().lower()[:MAX_PATTERN_LENGTH]
        if not pattern:
            return []
        hits: list[SearchHit] = []
        for ref_index, (note, values) in enumerate(self._records):
            matches = []
            for key in self.keys:
                fm = match_field(key, pattern, values[key], self.threshold)
                if fm is not None:
                    matches.append(fm)
            if matches:
                score = min(fm.score for fm in matches)
                hits.append(SearchHit(note, score, matches, ref_index))
        hits.sort(key=lambda h: (h.score, -len(h.matches), h.ref_index))
        return hits

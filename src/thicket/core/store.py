"""The authoritative, persisted note collection."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

import yaml

from ..errors import ImmutableFieldError, NoteNotFoundError
from .links import TitleLookup
from .model import Note, NoteId
from .ports import IdGenerator, NoteCodec, StorageStrategy

log = logging.getLogger(__name__)

Listener = Callable[[list[Note]], None]

EDITABLE_FIELDS = ("title", "content", "tags")
IMMUTABLE_FIELDS = ("id", "created_at")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_tags(tags: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(t.strip() for t in tags if t.strip()))


class NoteStore:
    """
    In-memory note collection synced to a flat key-value storage.

    Notes are kept newest first. Every mutation is written through to the
    storage and then announced to subscribers with a snapshot of the
    collection. Note objects are replaced, never mutated, so snapshots held
    by subscribers stay consistent.
    """

    def __init__(
        self,
        storage: StorageStrategy,
        codec: NoteCodec,
        idgen: IdGenerator,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.codec = codec
        self.idgen = idgen
        self.clock = clock
        self._notes: list[Note] = []
        self._listeners: list[Listener] = []

    # Collection access
    @property
    def notes(self) -> list[Note]:
        return list(self._notes)

    def __len__(self) -> int:
        return len(self._notes)

    def get_by_id(self, id: NoteId) -> Note | None:
        for note in self._notes:
            if note.id == id:
                return note
        return None

    def get_by_title(self, title: str) -> Note | None:
        return TitleLookup(self._notes).get(title)

    # Change notification
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.notes
        for listener in list(self._listeners):
            listener(snapshot)

    # Persistence
    def load(self) -> int:
        """Replace the collection with what the storage holds. Returns the count."""
        loaded: list[Note] = []
        for nid in self.storage.list_all_ids():
            raw = self.storage.read_raw(nid)
            if raw is None:
                continue
            try:
                note = self.codec.decode_file(raw, nid)
            except (yaml.YAMLError, ValueError, TypeError) as e:
                log.warning("Skipping unreadable note %s: %s", nid, e)
                continue
            if note.created_at is None:
                note.created_at = note.updated_at or self.clock()
            if note.updated_at is None:
                note.updated_at = note.created_at
            loaded.append(note)
        loaded.sort(key=lambda n: n.created_at, reverse=True)
        self._notes = loaded
        log.debug("Loaded %d notes", len(loaded))
        self._notify()
        return len(loaded)

    reload = load

    def _persist(self, note: Note) -> None:
        self.storage.write_raw(note.id, self.codec.encode_file(note))

    # Mutation
    def add(self, title: str, content: str = "", tags: Iterable[str] = ()) -> Note:
        now = self.clock()
        note = Note(
            id=self.idgen.new_id(),
            title=title,
            content=content,
            tags=_unique_tags(tags),
            created_at=now,
            updated_at=now,
        )
        self._persist(note)
        self._notes.insert(0, note)
        log.debug("Added note %s (%r)", note.id, note.title)
        self._notify()
        return note

    def update(self, id: NoteId, /, **fields: object) -> Note:
        """
        Change title, content and/or tags of a note and bump `updated_at`.

        Raises:
            NoteNotFoundError: no note with this id
            ImmutableFieldError: `id` or `created_at` was passed
        """
        for name in fields:
            if name in IMMUTABLE_FIELDS:
                raise ImmutableFieldError(name)
            if name not in EDITABLE_FIELDS:
                raise TypeError(f"update() got an unexpected field '{name}'")

        for pos, note in enumerate(self._notes):
            if note.id == id:
                break
        else:
            raise NoteNotFoundError(id)

        changes = dict(fields)
        if "tags" in changes:
            changes["tags"] = _unique_tags(changes["tags"])  # type: ignore[arg-type]
        stamps = [self.clock()] + [
            t for t in (note.updated_at, note.created_at) if t is not None
        ]
        updated = dataclasses.replace(note, **changes, updated_at=max(stamps))

        self._persist(updated)
        self._notes[pos] = updated
        log.debug("Updated note %s: %s", id, ", ".join(sorted(fields)) or "touch")
        self._notify()
        return updated

    def delete(self, id: NoteId) -> None:
        note = self.get_by_id(id)
        if note is None:
            raise NoteNotFoundError(id)
        self.storage.delete_raw(id)
        self._notes = [n for n in self._notes if n.id != id]
        log.debug("Deleted note %s", id)
        self._notify()

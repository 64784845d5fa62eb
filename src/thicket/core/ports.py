from collections.abc import Iterable
from typing import Any, Protocol

from .model import Note, NoteId, ReferenceToken


class StorageStrategy(Protocol):
    """
    Flat key-value store: one value per note id.
    """

    def read_raw(self, id: NoteId) -> str | None:
        pass

    def write_raw(self, id: NoteId, contents: str) -> None:
        pass

    def delete_raw(self, id: NoteId) -> None:
        pass

    def list_all_ids(self) -> Iterable[NoteId]:
        pass


class FrontmatterCodec(Protocol):
    """
    Round-trip the frontmatter block of a stored note.
    """

    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        pass

    def encode(self, meta: dict[str, Any]) -> str:
        pass


class NoteCodec(Protocol):
    """
    Turn a Note into the stored text and back.
    """

    def decode_file(self, text: str, id: NoteId) -> Note:
        pass

    def encode_file(self, note: Note) -> str:
        pass


class IdGenerator(Protocol):
    def new_id(self) -> NoteId:
        pass


class Renderer(Protocol):
    """
    Turn note content into display markup. Resolved references carry the
    target note id, unresolved ones the attempted title.
    """

    def render(self, text: str, tokens: Iterable[ReferenceToken]) -> str:
        pass

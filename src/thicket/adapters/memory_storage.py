from typing import Iterable
from ..core.ports import StorageStrategy


class MemoryStorage(StorageStrategy):
    """Dict-backed storage for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(initial or {})

    def read_raw(self, id: str) -> str | None:
        return self.items.get(id)

    def write_raw(self, id: str, contents: str) -> None:
        self.items[id] = contents

    def delete_raw(self, id: str) -> None:
        self.items.pop(id, None)

    def list_all_ids(self) -> Iterable[str]:
        return list(self.items)

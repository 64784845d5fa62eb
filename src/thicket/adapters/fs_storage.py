import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from ..core.ports import StorageStrategy

SUFFIX = ".md"


class FsStorage(StorageStrategy):
    """
    Notes as files in one directory, named `<id>.md`.

    Writes go through a temporary file in the same directory and are moved
    into place, so a watcher or a crash never sees half a note.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, id: str) -> Path:
        if not id or "/" in id or "\\" in id or id.startswith("."):
            raise ValueError(f"Invalid note id: {id!r}")
        return self.root / f"{id}{SUFFIX}"

    def read_raw(self, id: str) -> str | None:
        path = self.path_for(id)
        try:
            with path.open(encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def write_raw(self, id: str, contents: str) -> None:
        path = self.path_for(id)
        self.root.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.root, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(contents)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def delete_raw(self, id: str) -> None:
        self.path_for(id).unlink(missing_ok=True)

    def list_all_ids(self) -> Iterable[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            p.stem
            for p in self.root.iterdir()
            if p.suffix == SUFFIX and p.is_file() and not p.name.startswith(".")
        )

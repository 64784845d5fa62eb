"""Runtime wiring helper for CLI applications."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_storage import FsStorage
from .adapters.idgen import UuidId
from .adapters.yaml_codec import MarkdownNoteCodec, YamlFrontmatter
from .config import ThicketConfig, load_config
from .core.store import NoteStore
from .daily import DailyNoteScheduler
from .garden import Garden
from .search.engine import SearchEngine


@dataclass
class Runtime:
    """Container for all wired components."""
    store: NoteStore
    garden: Garden
    daily: DailyNoteScheduler
    config: ThicketConfig


def wire(store: NoteStore, config: ThicketConfig) -> Runtime:
    """Build the derived components around an already constructed store."""
    search = SearchEngine(
        threshold=config.search.threshold,
        keys=config.search.keys,
        max_history=config.search.max_history,
    )
    garden = Garden(store, search)
    daily = DailyNoteScheduler(store, tags=config.daily.tags)
    return Runtime(store=store, garden=garden, daily=daily, config=config)


def build_runtime(
    store_path: Path | None = None,
    config_path: Path | None = None,
    config: ThicketConfig | None = None,
) -> Runtime:
    """Build and wire all components for a note store on disk."""
    if config is None:
        config = load_config(config_path=config_path, store_path=store_path)

    if store_path is not None:
        config.store.root = store_path

    storage = FsStorage(config.store.root)
    codec = MarkdownNoteCodec(YamlFrontmatter())
    store = NoteStore(storage, codec, UuidId())
    store.load()

    return wire(store, config)

"""Watch mode - reload the note store when files in it change."""

import json
import logging
import signal
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .runtime import Runtime

log = logging.getLogger(__name__)


class DebounceHandler(FileSystemEventHandler):
    """File system event handler with debouncing."""

    def __init__(
        self,
        on_batch: Callable[[set[str], set[str]], None],
        debounce_ms: int = 150,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.on_batch = on_batch
        self.debounce_ms = debounce_ms
        self.clock = clock

        # Track pending changes by note id
        self.changed: set[str] = set()
        self.deleted: set[str] = set()
        self.last_event_time = 0.0

    def _extract_id(self, path: Path) -> str | None:
        name = path.name
        # hidden, temp and swap files
        if name.startswith(".") or name.endswith("~") or name.endswith(".swp"):
            return None
        if not name.endswith(".md"):
            return None
        return path.stem

    def _record(self, event: FileSystemEvent, bucket: set[str]) -> None:
        if event.is_directory:
            return
        note_id = self._extract_id(Path(str(event.src_path)))
        if note_id:
            bucket.add(note_id)
            self.last_event_time = self.clock()

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event, self.changed)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(event, self.changed)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._record(event, self.deleted)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._record(event, self.deleted)
        dest = getattr(event, "dest_path", None)
        if dest and not event.is_directory:
            note_id = self._extract_id(Path(str(dest)))
            if note_id:
                self.changed.add(note_id)

    @property
    def pending(self) -> bool:
        return bool(self.changed or self.deleted)

    def check_and_flush(self) -> None:
        """Flush if the debounce window has elapsed since the last event."""
        if not self.pending:
            return
        elapsed = (self.clock() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            self.flush()

    def flush(self) -> None:
        if not self.pending:
            return
        deleted = self.deleted - self.changed
        changed = set(self.changed)
        self.changed.clear()
        self.deleted.clear()
        self.on_batch(changed, deleted)


def watch_store(rt: Runtime, debounce_ms: int = 150, quiet: bool = False, json_output: bool = False) -> int:
    """
    Watch the store directory and reload the collection on change.

    Returns:
        Exit code
    """
    root = rt.config.store.root
    if not root.exists():
        print(f"Error: Store not found: {root}", file=sys.stderr)
        return 1

    running = True

    def handle_batch(changed: set[str], deleted: set[str]) -> None:
        start_time = time.time()
        count = rt.store.reload()
        duration_ms = int((time.time() - start_time) * 1000)
        graph = rt.garden.graph
        if json_output:
            event = {
                "type": "batch",
                "changed": sorted(changed),
                "deleted": sorted(deleted),
                "notes": count,
                "edges": len(graph.edges),
                "duration_ms": duration_ms,
            }
            print(json.dumps(event), flush=True)
        elif not quiet:
            print(
                f"Reloaded: {count} notes, {len(graph.edges)} links "
                f"(~{len(changed)} -{len(deleted)}, {duration_ms}ms)",
                flush=True,
            )

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = DebounceHandler(handle_batch, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(root), recursive=False)

    if not quiet and not json_output:
        print(f"Watching {root} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()
    log.debug("Observer started on %s", root)

    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0

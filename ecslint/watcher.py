"""
File system watcher that triggers re-analysis.

Changes are debounced: an editor save cycle produces a burst of events,
and analysis should run once after the burst settles.
"""

import logging
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .source.loader import SKIPPED_DIRS

logger = logging.getLogger(__name__)


class SourceChangeHandler(FileSystemEventHandler):
    """
    Collects changes to source and configuration files.

    Key behaviors:
    - Filters to relevant file types (.py, .pyi, .toml)
    - Ignores hidden, cache and virtualenv directories
    - Reports a changed path once no new event arrived for it for DEBOUNCE_SECONDS
    """

    RELEVANT_EXTENSIONS = {".py", ".pyi", ".toml"}
    DEBOUNCE_SECONDS = 0.5

    def __init__(self, root: Path, on_change: Callable[[list[Path]], None] | None = None):
        super().__init__()
        self.root = root
        self.on_change = on_change
        self.pending: dict[str, float] = {}  # path -> last event time

    def _is_relevant(self, path: str) -> bool:
        p = Path(path)
        try:
            parts = p.relative_to(self.root).parts
        except ValueError:
            parts = p.parts

        if any(part.startswith(".") or part in SKIPPED_DIRS for part in parts[:-1]):
            return False

        return p.suffix.lower() in self.RELEVANT_EXTENSIONS

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        paths = [event.src_path, getattr(event, "dest_path", "")]
        for path in paths:
            if path and self._is_relevant(str(path)):
                self.pending[str(path)] = time.time()

    def flush_pending(self) -> list[Path]:
        """Emit the pending changes that have passed the debounce window."""
        now = time.time()
        changed = []

        # The observer thread keeps writing to self.pending; work on a copy.
        for path_str, timestamp in list(self.pending.items()):
            if now - timestamp >= self.DEBOUNCE_SECONDS:
                changed.append(Path(path_str))
                self.pending.pop(path_str, None)

        if not changed:
            return []

        changed.sort()
        logger.debug(f"{len(changed)} file(s) changed")
        if self.on_change:
            self.on_change(changed)
        return changed


def watch_project(
    root: Path,
    on_change: Callable[[list[Path]], None] | None = None,
    recursive: bool = True,
) -> tuple[Observer, SourceChangeHandler]:
    """
    Start watching a project for source changes.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = SourceChangeHandler(root, on_change=on_change)

    observer = Observer()
    observer.schedule(handler, str(root), recursive=recursive)
    observer.start()

    return observer, handler


def run_watch_loop(root: Path, on_change: Callable[[list[Path]], None]) -> None:
    """
    Run the watch loop until interrupted.

    This is a blocking function that polls the handler for settled changes.
    """
    observer, handler = watch_project(root, on_change=on_change)

    try:
        while True:
            time.sleep(0.25)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()

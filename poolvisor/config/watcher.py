"""
File watcher that requests a rolling restart when watched files change.

Uses the watchdog library for file system monitoring with trailing-edge
debouncing, so an editor's burst of writes produces a single reload. The
watcher never touches supervisor state: `on_change` is expected to enqueue
a reload event.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any


class RestartWatcher:
    """
    Watches files or directories and calls `on_change` after they settle.

    Example:
        >>> watcher = RestartWatcher(lg, ["app/"], lambda: queue.put(Event(EventKind.RELOAD)))
        >>> watcher.start()
        >>> # ... edits under app/ now trigger a rolling restart
        >>> watcher.stop()

    Note:
        Requires the watchdog package.
    """

    def __init__(
        self,
        lg: logging.Logger,
        paths: Iterable[str | Path],
        on_change: Callable[[], None],
        debounce_ms: int = 500,
    ) -> None:
        """
        Initialize the watcher.

        Args:
            lg: Logger for the watcher's own messages
            paths: Files and/or directories to watch
            on_change: Called once per settled burst of modifications
            debounce_ms: Quiet time required before `on_change` fires
        """
        self._lg = lg
        self._paths = [Path(p).expanduser().resolve() for p in paths]
        self._on_change = on_change
        self._debounce_ms = debounce_ms
        self._observer: Any = None  # watchdog Observer
        self._debounce_timer: threading.Timer | None = None
        self._lock = threading.RLock()
        self._running = False

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def _watched_dirs(self) -> dict[Path, bool]:
        """Map each directory to schedule onto whether it is watched recursively."""
        dirs: dict[Path, bool] = {}
        for path in self._paths:
            if path.is_dir():
                dirs[path] = True
            else:
                dirs.setdefault(path.parent, False)
        return dirs

    def is_watched(self, path: str | Path) -> bool:
        """Check whether a modified path falls under one of the watched paths."""
        candidate = Path(path).resolve()
        for watched in self._paths:
            if candidate == watched or watched in candidate.parents:
                return True
        return False

    def _create_handler(self) -> Any:  # pragma: no cover
        from watchdog.events import FileSystemEventHandler

        watcher = self

        class _Handler(FileSystemEventHandler):  # type: ignore[misc]
            def on_any_event(self, event: Any) -> None:
                if event.is_directory or event.event_type not in (
                    "modified",
                    "created",
                    "moved",
                ):
                    return
                path = getattr(event, "dest_path", "") or event.src_path
                if watcher.is_watched(path):
                    watcher._on_file_changed()

        return _Handler()

    def start(self) -> None:
        """Start watching."""
        try:
            from watchdog.observers import Observer
        except ImportError:
            raise ImportError(
                "watchdog is required for file watching. "
                "Install with: pip install watchdog"
            ) from None

        with self._lock:  # pragma: no cover
            if self._running:
                return
            self._observer = Observer()
            handler = self._create_handler()
            for directory, recursive in self._watched_dirs().items():
                self._observer.schedule(handler, str(directory), recursive=recursive)
            self._observer.start()
            self._running = True
            self._lg.debug(
                "watching for changes", extra={"paths": [str(p) for p in self._paths]}
            )

    def stop(self) -> None:
        """Stop watching and drop any pending notification."""
        with self._lock:
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
                self._debounce_timer = None
            if self._observer is not None:  # pragma: no cover
                self._observer.stop()
                self._observer.join(timeout=2.0)
                self._observer = None
            self._running = False

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def _on_file_changed(self) -> None:
        """Restart the debounce timer; `on_change` fires after the quiet period."""
        with self._lock:
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
            self._debounce_timer = threading.Timer(
                self._debounce_ms / 1000.0, self._fire
            )
            self._debounce_timer.daemon = True
            self._debounce_timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._debounce_timer = None
        self._lg.info("watched files changed")
        try:
            self._on_change()
        except Exception as e:
            self._lg.error("change callback failed", extra={"exception": e})

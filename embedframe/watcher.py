"""Rebundle whenever the front-end build re-emits its outputs.

Uses watchdog to monitor the build output directory with debouncing, so a
build that writes the script and the shell in quick succession triggers a
single bundle run.
"""

from __future__ import annotations

import threading

from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .bundler import bundle
from .exceptions import EmbedFrameException
from .log import debug, info, warn


if TYPE_CHECKING:
    from collections.abc import Callable

    from .bundler import BundlePaths, BundleResult


class BundleWatcher:
    """Watch the bundler inputs and rerun the bundler when they change."""

    def __init__(
        self,
        paths: BundlePaths,
        debounce_ms: int = 200,
        on_bundle: Callable[[BundleResult], None] | None = None,
    ) -> None:
        """Initialize the watcher.

        Parameters
        ----------
        paths : BundlePaths
            Bundle inputs and outputs. The shell's directory is watched.
        debounce_ms : int, optional
            Changes within this window are batched into one bundle run.
        on_bundle : Callable[[BundleResult], None] or None, optional
            Called after every successful run.
        """
        self._paths = paths
        self._inputs = {paths.shell.resolve(), paths.script.resolve()}
        self._debounce_sec = max(10, debounce_ms) / 1000.0
        self._on_bundle = on_bundle

        self._observer: Any = None  # Observer instance or None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        # Serializes bundle runs from start() and the debounce timer
        self._run_lock = threading.Lock()
        self._running = False
        self._runs = 0

    @property
    def running(self) -> bool:
        """Whether the watcher is running."""
        return self._running

    @property
    def runs(self) -> int:
        """Number of successful bundle runs."""
        return self._runs

    def start(self) -> None:
        """Start watching. Bundles immediately if both inputs exist."""
        if self._running:
            return

        with self._lock:
            directory = self._paths.shell.parent.resolve()
            directory.mkdir(parents=True, exist_ok=True)
            self._observer = Observer()
            self._observer.schedule(_WatchHandler(self), str(directory), recursive=False)
            self._observer.start()
            self._running = True
            debug(f"Watching {directory} for build outputs")

        if self._inputs_ready():
            self.run_once()

    def stop(self) -> None:
        """Stop watching and cancel any pending run."""
        if not self._running:
            return

        with self._lock:
            self._running = False
            if self._timer:
                self._timer.cancel()
                self._timer = None
            observer, self._observer = self._observer, None

        # Joined outside the lock; the observer thread may be waiting on it
        if observer:
            observer.stop()
            observer.join(timeout=2.0)
        debug("Bundle watcher stopped")

    def _inputs_ready(self) -> bool:
        return self._paths.shell.is_file() and self._paths.script.is_file()

    def run_once(self) -> BundleResult | None:
        """Run the bundler now. Failures are logged, not raised."""
        with self._run_lock:
            try:
                result = bundle(self._paths)
            except EmbedFrameException as e:
                warn(f"Bundle failed: {e}")
                return None
            except OSError as e:
                warn(f"Bundle failed on file access: {e}")
                return None
            self._runs += 1

        if self._on_bundle:
            try:
                self._on_bundle(result)
            except Exception as e:
                warn(f"Error in bundle callback: {e}")
        return result

    def _on_file_change(self, path: Path) -> None:
        """Schedule a debounced run when one of the inputs changed."""
        if path not in self._inputs:
            return

        with self._lock:
            if not self._running:
                return
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce_sec, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        if not self._inputs_ready():
            debug("Build outputs incomplete, waiting for the next change")
            return
        info("Build outputs changed, rebundling")
        self.run_once()


class _WatchHandler(FileSystemEventHandler):
    """Watchdog event handler that forwards to BundleWatcher."""

    def __init__(self, watcher: BundleWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def _forward(self, src_path: str | bytes) -> None:
        if isinstance(src_path, bytes):
            src_path = src_path.decode()
        self._watcher._on_file_change(Path(src_path).resolve())

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        if not event.is_directory:
            self._forward(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events."""
        if not event.is_directory:
            self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle files moved into place (atomic writes)."""
        if not event.is_directory:
            self._forward(event.dest_path)

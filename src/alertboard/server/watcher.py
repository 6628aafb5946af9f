"""File watcher that re-reads a JSON alert source when it changes."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional, Union

from ..exceptions import FeedError
from ..feed import AlertFeed

logger = logging.getLogger(__name__)

# Wait this long after the last write before re-reading
DEBOUNCE_SECONDS = 0.5

# Minimum gap between reloads
COOLDOWN_SECONDS = 0.5


class FileWatcher:
    """Watches one alert file and refreshes the feed on change.

    Uses ``watchfiles`` (Rust-backed). The parent directory is watched so
    editors that replace the file atomically are still picked up.
    """

    def __init__(self, path: Union[str, Path], feed: AlertFeed) -> None:
        self.path = Path(path).resolve()
        self.feed = feed
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.reloads = 0

    def start(self) -> None:
        """Start the watcher thread."""
        self._thread = threading.Thread(target=self._watch_loop, name="alertboard-watcher", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop."""
        logger.debug("Stopping watcher thread...")
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            if self._thread.is_alive():
                logger.warning("Watcher thread did not exit cleanly within 5 seconds")
            else:
                logger.debug("Watcher thread stopped successfully")
            self._thread = None

    def reload(self) -> bool:
        """Re-read the file into the feed; failures keep the last snapshot."""
        try:
            applied = self.feed.refresh()
        except FeedError as e:
            logger.warning("Reload of %s failed: %s", self.path, e)
            return False
        self.reloads += 1
        return applied

    def _watch_loop(self) -> None:
        """Background thread: watch the file, debounce changes, reload."""
        try:
            from watchfiles import watch
        except ImportError:
            logger.error("watchfiles not installed; file watching disabled")
            return

        logger.info("Watching %s for changes", self.path)

        for _changes in watch(
            self.path.parent,
            stop_event=self._stop_event,
            debounce=int(DEBOUNCE_SECONDS * 1000),
            rust_timeout=5000,
            watch_filter=_SameFile(self.path),
        ):
            if self._stop_event.is_set():
                break
            logger.info("Detected change in %s, reloading alerts", self.path.name)
            self.reload()
            self._stop_event.wait(COOLDOWN_SECONDS)


class _SameFile:
    """watchfiles filter: only the watched file itself."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __call__(self, change: object, path: str) -> bool:
        return Path(path).resolve() == self.path

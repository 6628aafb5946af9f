"""Record-set refresh: request sequencing, auto-refresh timer, debouncing.

Fetches can overlap (a manual refresh during an auto-refresh), so each
request takes a sequence number and only a result newer than the applied
one replaces the snapshot. A slow old response that lands after a newer
one is discarded.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from .exceptions import FeedError
from .models import Alert

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Sequence[Alert]]
Listener = Callable[["FeedSnapshot"], None]


@dataclass(frozen=True)
class FeedSnapshot:
    """One applied record set."""

    alerts: tuple[Alert, ...]
    sequence: int
    fetched_at: float = field(default_factory=time.time)


class AlertFeed:
    """Holds the latest record set and orders concurrent refreshes.

    Thread-safe: refreshes may run on timer or server threads while views
    read :attr:`snapshot`.
    """

    def __init__(self, fetch: Fetcher, source_name: str = "alerts") -> None:
        self._fetch = fetch
        self.source_name = source_name
        self._lock = threading.RLock()
        self._issued = 0
        self._snapshot = FeedSnapshot(alerts=(), sequence=0, fetched_at=0.0)
        self._listeners: list[Listener] = []
        self.last_error: Optional[FeedError] = None
        self.discarded = 0

    @property
    def snapshot(self) -> FeedSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def alerts(self) -> tuple[Alert, ...]:
        return self.snapshot.alerts

    def begin(self) -> int:
        """Issue the sequence number for a new request."""
        with self._lock:
            self._issued += 1
            return self._issued

    def complete(self, sequence: int, alerts: Sequence[Alert]) -> bool:
        """Apply *alerts* fetched by request *sequence* unless a newer one already landed."""
        with self._lock:
            if sequence <= self._snapshot.sequence:
                self.discarded += 1
                logger.warning(
                    "Discarding stale response #%d from %s (already at #%d)",
                    sequence,
                    self.source_name,
                    self._snapshot.sequence,
                )
                return False
            snapshot = FeedSnapshot(alerts=tuple(alerts), sequence=sequence)
            self._snapshot = snapshot
            self.last_error = None
            listeners = list(self._listeners)

        logger.info("Applied %d alerts from %s (#%d)", len(snapshot.alerts), self.source_name, sequence)
        for listener in listeners:
            listener(snapshot)
        return True

    def fail(self, sequence: int, error: FeedError) -> None:
        """Record a failed request; the applied snapshot stays in place."""
        with self._lock:
            if sequence < self._snapshot.sequence:
                return
            self.last_error = error
        logger.warning("Refresh #%d failed: %s", sequence, error)

    def refresh(self) -> bool:
        """Fetch and apply in one go.

        Returns whether the result was applied.

        Raises:
            FeedError: The source failed (retryable unless stated otherwise)
        """
        sequence = self.begin()
        try:
            alerts = self._fetch()
        except FeedError as e:
            self.fail(sequence, e)
            raise
        return self.complete(sequence, alerts)

    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass


class AutoRefresher:
    """Refreshes a feed every *interval* seconds on a background thread.

    ``pause()`` skips ticks without stopping the thread; ``stop()`` ends it.
    Failures are logged and retried on the next tick.
    """

    def __init__(self, feed: AlertFeed, interval: float = 5.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.feed = feed
        self.interval = interval
        self._stop_event = threading.Event()
        self._paused = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="alertboard-refresh", daemon=True)
        self._thread.start()

    def pause(self) -> None:
        self._paused.set()

    def resume(self) -> None:
        self._paused.clear()

    def stop(self) -> None:
        logger.debug("Stopping refresh thread...")
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            if self._thread.is_alive():
                logger.warning("Refresh thread did not exit within 5 seconds (fetch may be stuck)")
            self._thread = None

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            if self._paused.is_set():
                continue
            try:
                self.feed.refresh()
            except FeedError:
                # Already recorded on the feed; next tick retries
                continue
            except Exception:
                logger.exception("Auto-refresh failed")


class Debouncer:
    """Coalesces bursts of calls into one call after *delay* seconds of quiet.

    The latest arguments win. ``flush()`` runs a pending call immediately,
    ``cancel()`` drops it.
    """

    def __init__(self, func: Callable[..., Any], delay: float) -> None:
        self.func = func
        self.delay = delay
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple[tuple[Any, ...], dict[str, Any]]] = None
        # Bumped on every call; a timer only fires for the generation it was armed with
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending = (args, kwargs)
            if self.delay <= 0:
                self._timer = None
            else:
                self._timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
                self._timer.daemon = True
                self._timer.start()
        if self.delay <= 0:
            self.flush()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            pending, self._pending = self._pending, None
        if pending is not None:
            args, kwargs = pending
            self.func(*args, **kwargs)

    def flush(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            pending, self._pending = self._pending, None
        if pending is not None:
            args, kwargs = pending
            self.func(*args, **kwargs)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            self._pending = None


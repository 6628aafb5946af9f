"""Thread-safe shared state for the dashboard server."""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

from ..context import DashboardContext
from ..feed import AlertFeed, FeedSnapshot
from ..views import AlertTableView, HeatmapView

logger = logging.getLogger(__name__)


class ServerState:
    """Holds the dashboard views and fans state changes out to WebSockets.

    Thread-safe: the refresh and watcher threads apply new snapshots
    through the feed listener, the Starlette handlers read and navigate
    the views inside :meth:`views`.
    """

    def __init__(
        self,
        context: DashboardContext,
        feed: AlertFeed,
        group_by: Sequence[str] = (),
        heatmap_group_by: Sequence[str] = (),
    ) -> None:
        self.context = context
        self.feed = feed
        self._lock = threading.RLock()
        self._listeners: list[tuple[Any, Optional[asyncio.AbstractEventLoop]]] = []
        self._state: Optional[dict[str, Any]] = None

        self.table = AlertTableView(context, feed.alerts, group_by=group_by)
        self.heatmap = HeatmapView(context, feed.alerts, group_by=heatmap_group_by)
        feed.add_listener(self._on_snapshot)

    @contextmanager
    def views(self) -> Iterator["ServerState"]:
        """Hold the state lock while reading or navigating the views."""
        with self._lock:
            yield self

    def _on_snapshot(self, snapshot: FeedSnapshot) -> None:
        with self._lock:
            self.table.set_alerts(snapshot.alerts)
            self.heatmap.set_alerts(snapshot.alerts)
        self.publish()

    def summary(self) -> dict[str, Any]:
        """Current dashboard summary (record count, grouping, zoom, errors)."""
        with self._lock:
            snapshot = self.feed.snapshot
            error = self.feed.last_error
            sort_field, sort_direction = self.table.sort
            return {
                "source": self.feed.source_name,
                "sequence": snapshot.sequence,
                "fetchedAt": snapshot.fetched_at,
                "alertCount": len(snapshot.alerts),
                "groupBy": list(self.table.group_by),
                "groupLabels": [self.context.label(field) for field in self.table.group_by],
                "expandedKeys": sorted(self.table.expanded_keys),
                "search": self.table.search,
                "sort": {"field": sort_field, "direction": sort_direction},
                "heatmapGroupBy": list(self.heatmap.group_by),
                "zoomPath": list(self.heatmap.zoom_path),
                "error": None if error is None else {"message": str(error), "retryable": error.retryable},
            }

    def publish(self) -> None:
        """Recompute the summary and broadcast it as the new state."""
        self.update(self.summary())

    def update(self, state: dict[str, Any]) -> None:
        """Replace the current dashboard state and notify listeners."""
        with self._lock:
            self._state = state
            # Copy listeners list to avoid mutation during iteration
            listeners = list(self._listeners)

        state_msg = {"type": "complete", "state": state}
        for queue, loop in listeners:
            self._dispatch(queue, loop, state_msg, is_state_update=True)

    def send_event(self, event: str, **payload: Any) -> None:
        """Broadcast an informational event (zoom, refresh failure, ...)."""
        msg: dict[str, Any] = {"type": event, **payload}
        with self._lock:
            listeners = list(self._listeners)
        for queue, loop in listeners:
            self._dispatch(queue, loop, msg, is_state_update=False)

    def _dispatch(
        self, queue: Any, loop: Optional[asyncio.AbstractEventLoop], msg: dict[str, Any], is_state_update: bool
    ) -> None:
        # asyncio queues must be fed from their own loop
        if loop is not None and loop.is_running():
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is not loop:
                loop.call_soon_threadsafe(self._send_to_queue, queue, msg, is_state_update)
                return
        self._send_to_queue(queue, msg, is_state_update)

    def _send_to_queue(self, queue: Any, msg: dict[str, Any], is_state_update: bool = False) -> bool:
        """Send message to queue with smart overflow handling.

        For state updates: drain old messages and send latest (stale data is useless)
        For events: drop if queue full (events are informational)
        """
        try:
            if hasattr(queue, "qsize") and hasattr(queue, "maxsize"):
                size = queue.qsize()
                maxsize = queue.maxsize
                if maxsize and size >= maxsize - 1:
                    if is_state_update:
                        drained = 0
                        while not queue.empty():
                            try:
                                queue.get_nowait()
                                drained += 1
                            except asyncio.QueueEmpty:
                                break
                        if drained:
                            logger.debug("Drained %d stale messages from WebSocket queue", drained)
                    else:
                        logger.debug("WebSocket queue full, dropping %s event", msg.get("type"))
                        return False
            queue.put_nowait(msg)
            return True
        except asyncio.QueueFull:
            if is_state_update:
                logger.warning("WebSocket queue full even after drain - client may be disconnected")
            return False

    def get_state(self) -> Optional[dict[str, Any]]:
        """Return the latest broadcast state."""
        with self._lock:
            return self._state

    def add_listener(self, queue: Any, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Register a queue to receive state updates (fed on *loop* when given)."""
        with self._lock:
            self._listeners.append((queue, loop))

    def remove_listener(self, queue: Any) -> None:
        """Unregister a listener queue."""
        with self._lock:
            self._listeners = [(q, loop) for q, loop in self._listeners if q is not queue]

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def close(self) -> None:
        self.feed.remove_listener(self._on_snapshot)

"""Per-dashboard context: config, value getter and owned timers.

Views receive a context instead of reaching for module-level state, and
everything that runs in the background (auto-refresh threads, resize
debounce timers) is registered here so one ``close()`` stops it all.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Union

from .config import DashboardConfig
from .feed import AlertFeed, AutoRefresher, Debouncer
from .fields import ValueGetter, field_label, make_value_getter

logger = logging.getLogger(__name__)


class DashboardContext:
    """Shared, explicitly owned state for one dashboard.

    Example:
        >>> with DashboardContext() as ctx:
        ...     table = AlertTableView(ctx, alerts)
    """

    def __init__(
        self,
        config: Optional[DashboardConfig] = None,
        column_labels: Optional[Mapping[str, str]] = None,
        value_getter: Optional[ValueGetter] = None,
    ) -> None:
        self.config = config or DashboardConfig()
        self.column_labels: dict[str, str] = dict(column_labels or {})
        # Created once: grouping caches key on getter identity
        self.value_getter: ValueGetter = value_getter or make_value_getter(self.config.unknown_label)
        self._owned: list[Union[AutoRefresher, Debouncer]] = []
        self.closed = False

    def label(self, field_id: str) -> str:
        return field_label(field_id, self.column_labels)

    def debouncer(self, func: Callable[..., Any], delay: Optional[float] = None) -> Debouncer:
        """Debouncer owned by this context (resize debounce delay by default)."""
        if delay is None:
            delay = self.config.refresh.resize_debounce_seconds
        debouncer = Debouncer(func, delay)
        self._owned.append(debouncer)
        return debouncer

    def auto_refresher(self, feed: AlertFeed, interval: Optional[float] = None) -> AutoRefresher:
        """Auto-refresher owned by this context; not started."""
        if interval is None:
            interval = self.config.refresh.interval_seconds
        refresher = AutoRefresher(feed, interval)
        self._owned.append(refresher)
        return refresher

    def close(self) -> None:
        """Stop refresh threads and drop pending debounced calls."""
        if self.closed:
            return
        for resource in reversed(self._owned):
            if isinstance(resource, AutoRefresher):
                resource.stop()
            else:
                resource.cancel()
        self._owned.clear()
        self.closed = True
        logger.debug("Dashboard context closed")

    def __enter__(self) -> "DashboardContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

"""Windowed (virtualized) row rendering.

Keeps per-row heights in a numpy array with a running prefix sum, so the
rows intersecting a viewport are found by binary search and a height
correction shifts only the offsets after the measured row. Measured
heights are remembered per row key and reapplied when the row sequence
changes (expand/collapse), so already-seen rows keep their real size.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VirtualItem:
    """One materialized row: its index, key and vertical extent."""

    index: int
    key: str
    start: float
    size: float

    @property
    def end(self) -> float:
        return self.start + self.size


class RowVirtualizer:
    """Maps a row sequence and a scrolled viewport to the rows to render.

    Args:
        estimate_size: Height assumed for rows without an explicit estimate
        overscan: Extra rows rendered past each viewport edge
        viewport_height: Initial container height (0 = not measured yet)
    """

    def __init__(self, estimate_size: float = 40.0, overscan: int = 5, viewport_height: float = 0.0) -> None:
        if estimate_size <= 0:
            raise ValueError("estimate_size must be positive")
        if overscan < 0:
            raise ValueError("overscan must be non-negative")
        self.estimate_size = float(estimate_size)
        self.overscan = overscan
        self._viewport_height = max(float(viewport_height), 0.0)
        self._scroll_offset = 0.0

        self._keys: list[str] = []
        self._estimates = np.zeros(0, dtype=np.float64)
        self._sizes = np.zeros(0, dtype=np.float64)
        # _starts[i] is the top of row i; _starts[n] is the total extent
        self._starts = np.zeros(1, dtype=np.float64)
        self._measured: dict[str, float] = {}
        # Bumped on every change that can move the window
        self.version = 0

    # ── Inputs ───────────────────────────────────────────────────

    def set_rows(self, keys: Sequence[str], estimates: Optional[Sequence[float]] = None) -> None:
        """Replace the row sequence.

        *estimates* gives a per-row height guess (e.g. header vs alert
        rows); measured heights for known keys take precedence.
        """
        keys = list(keys)
        if estimates is None:
            est = np.full(len(keys), self.estimate_size, dtype=np.float64)
        else:
            if len(estimates) != len(keys):
                raise ValueError("estimates must match keys in length")
            est = np.asarray(estimates, dtype=np.float64)

        sizes = est.copy()
        if self._measured:
            for i, key in enumerate(keys):
                measured = self._measured.get(key)
                if measured is not None:
                    sizes[i] = measured

        self._keys = keys
        self._estimates = est
        self._sizes = sizes
        self._starts = np.concatenate(([0.0], np.cumsum(sizes)))
        self.version += 1
        logger.debug("Virtualizer rows set: %d rows, total %.0fpx", len(keys), self.total_size)

    def measure(self, index: int, height: float) -> bool:
        """Record the rendered height of row *index*.

        Returns True when the height differs from what was assumed.
        """
        if not 0 <= index < len(self._keys) or height < 0:
            return False
        height = float(height)
        self._measured[self._keys[index]] = height
        delta = height - self._sizes[index]
        if delta == 0:
            return False
        self._sizes[index] = height
        self._starts[index + 1:] += delta
        self.version += 1
        return True

    def scroll_to(self, offset: float) -> None:
        offset = max(float(offset), 0.0)
        if offset != self._scroll_offset:
            self._scroll_offset = offset
            self.version += 1

    def resize(self, viewport_height: float) -> None:
        viewport_height = max(float(viewport_height), 0.0)
        if viewport_height != self._viewport_height:
            self._viewport_height = viewport_height
            self.version += 1

    def forget_measurements(self) -> None:
        """Drop measured heights, e.g. after a column width change."""
        self._measured.clear()
        self.set_rows(self._keys, self._estimates)

    # ── Outputs ──────────────────────────────────────────────────

    @property
    def count(self) -> int:
        return len(self._keys)

    @property
    def total_size(self) -> float:
        return float(self._starts[-1])

    @property
    def viewport_height(self) -> float:
        return self._viewport_height

    @property
    def scroll_offset(self) -> float:
        """Scroll offset clamped to the current content extent."""
        max_offset = max(self.total_size - self._viewport_height, 0.0)
        return min(self._scroll_offset, max_offset)

    def row_extent(self, index: int) -> tuple[float, float]:
        """(start, size) of row *index*."""
        return float(self._starts[index]), float(self._sizes[index])

    def offset_for_index(self, index: int, align: str = "start") -> float:
        """Scroll offset that brings row *index* into view."""
        if not self._keys:
            return 0.0
        index = min(max(index, 0), len(self._keys) - 1)
        start, size = self.row_extent(index)
        if align == "end":
            offset = start + size - self._viewport_height
        elif align == "center":
            offset = start + size / 2 - self._viewport_height / 2
        else:
            offset = start
        return min(max(offset, 0.0), max(self.total_size - self._viewport_height, 0.0))

    def anchor_index(self) -> Optional[int]:
        """First row whose extent still overlaps the top of the viewport."""
        if not self._keys:
            return None
        return self._first_overlapping(self.scroll_offset)

    def _first_overlapping(self, top: float) -> int:
        first = int(np.searchsorted(self._starts[1:], top, side="right"))
        return min(first, len(self._keys) - 1)

    def visible_range(self) -> Optional[tuple[int, int]]:
        """Inclusive ``(lo, hi)`` of rows to render, overscan included.

        None when there are no rows or the viewport has no height yet.
        """
        n = len(self._keys)
        if n == 0 or self._viewport_height <= 0:
            return None

        top = self.scroll_offset
        bottom = top + self._viewport_height
        first = self._first_overlapping(top)
        # Last row starting above the viewport bottom
        last = int(np.searchsorted(self._starts[:-1], bottom, side="left")) - 1
        last = max(last, first)

        lo = max(first - self.overscan, 0)
        hi = min(last + self.overscan, n - 1)
        return lo, hi

    def virtual_items(self) -> list[VirtualItem]:
        window = self.visible_range()
        if window is None:
            return []
        lo, hi = window
        return [
            VirtualItem(index=i, key=self._keys[i], start=float(self._starts[i]), size=float(self._sizes[i]))
            for i in range(lo, hi + 1)
        ]

"""Squarified treemap tiling.

Values are laid out in rows; a row keeps growing while adding the next
value does not worsen its worst aspect ratio. Rows alternate between
dicing (horizontal strip) and slicing (vertical strip) depending on the
remaining rectangle's orientation. Input must be sorted descending for the
classic squarified result; zero values get zero-area rectangles.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Sequence

# Target aspect ratio for rows; the golden ratio gives slightly wider
# than square cells that read well with a text label.
PHI = (1 + math.sqrt(5)) / 2


class Rect(NamedTuple):
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0


def squarify(values: Sequence[float], bounds: Rect, ratio: float = PHI) -> list[Rect]:
    """Tile *bounds* with one rectangle per value, areas proportional to value.

    Returns rectangles in input order. Degenerate bounds (zero width or
    height) or an all-zero input yield zero-area rectangles at the origin
    corner instead of dividing by zero.
    """
    n = len(values)
    if n == 0:
        return []

    x0, y0, x1, y1 = bounds
    total = float(sum(v for v in values if v > 0))
    if total <= 0 or x1 <= x0 or y1 <= y0:
        return [Rect(x0, y0, x0, y0)] * n

    rects: list[Rect] = [Rect(x0, y0, x0, y0)] * n
    remaining = total
    i0 = i1 = 0

    while i0 < n:
        dx, dy = x1 - x0, y1 - y0

        # Find the next non-empty value to seed the row
        sum_value = 0.0
        while i1 < n:
            sum_value = max(values[i1], 0.0)
            i1 += 1
            if sum_value:
                break
        if not sum_value:
            break

        min_value = max_value = sum_value
        alpha = max(dy / dx, dx / dy) / (remaining * ratio)
        beta = sum_value * sum_value * alpha
        min_ratio = max(max_value / beta, beta / min_value)

        # Keep adding values while the aspect ratio holds or improves
        while i1 < n:
            node_value = max(values[i1], 0.0)
            sum_value += node_value
            if node_value < min_value:
                min_value = node_value
            if node_value > max_value:
                max_value = node_value
            beta = sum_value * sum_value * alpha
            new_ratio = max(max_value / beta, beta / min_value) if min_value > 0 else math.inf
            if new_ratio > min_ratio:
                sum_value -= node_value
                break
            min_ratio = new_ratio
            i1 += 1

        row = range(i0, i1)
        if dx < dy:
            # Dice: a horizontal strip across the top
            row_y1 = y0 + dy * sum_value / remaining if remaining else y1
            _dice(values, row, rects, x0, y0, x1, row_y1, sum_value)
            y0 = row_y1
        else:
            # Slice: a vertical strip down the left side
            row_x1 = x0 + dx * sum_value / remaining if remaining else x1
            _slice(values, row, rects, x0, y0, row_x1, y1, sum_value)
            x0 = row_x1

        remaining -= sum_value
        i0 = i1
        if x1 <= x0 or y1 <= y0:
            break

    return rects


def _dice(values, row, rects, x0, y0, x1, y1, row_value) -> None:
    k = (x1 - x0) / row_value if row_value else 0.0
    x = x0
    for i in row:
        width = max(values[i], 0.0) * k
        rects[i] = Rect(x, y0, x + width, y1)
        x += width


def _slice(values, row, rects, x0, y0, x1, y1, row_value) -> None:
    k = (y1 - y0) / row_value if row_value else 0.0
    y = y0
    for i in row:
        height = max(values[i], 0.0) * k
        rects[i] = Rect(x0, y, x1, y + height)
        y += height

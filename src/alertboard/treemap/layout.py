"""Positioned-rectangle layout for the alert heatmap.

A layout pass takes the nodes of the current zoom level and a viewport
and returns a flat, immutable list of rectangles. Parents always precede
their children and are referenced by index into that same list. Group
rectangles keep a header band at the top for their label, percentage and
zoom target; their children tile the content area below it.

The pass never draws anything: each rectangle carries precomputed label
visibility so a renderer only has to map it onto its own primitives.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config import TreemapConfig
from .nodes import TreemapNode, total_value
from .squarify import Rect, squarify

logger = logging.getLogger(__name__)

READY = "ready"
EMPTY = "empty"
UNMEASURED = "unmeasured"

KIND_GROUP = "group"
KIND_ALERT = "alert"
KIND_OVERFLOW = "overflow"


@dataclass(frozen=True)
class LabelVisibility:
    """Which sub-elements fit inside a rectangle."""

    header: bool = False
    name: bool = False
    icon: bool = False
    percentage: bool = False
    count: bool = False
    overflow_count: bool = False


@dataclass(frozen=True)
class PositionedNode:
    """One rectangle of a layout pass.

    ``parent`` is the index of the enclosing group rectangle in the same
    layout, or -1 for direct children of the current zoom level.
    ``percentage`` is relative to the current zoom level's total value.
    """

    index: int
    parent: int
    depth: int
    x: float
    y: float
    width: float
    height: float
    kind: str
    node: TreemapNode
    percentage: float
    labels: LabelVisibility
    header_height: float = 0.0

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def value(self) -> float:
        return self.node.value

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height

    def in_header(self, py: float) -> bool:
        """True when *py* falls inside a group's header band."""
        return self.kind == KIND_GROUP and py < self.y + self.header_height


@dataclass(frozen=True)
class TreemapLayout:
    """Result of one layout pass."""

    status: str
    width: float
    height: float
    total_value: float
    nodes: tuple[PositionedNode, ...] = ()

    @property
    def is_ready(self) -> bool:
        return self.status == READY

    def top_level(self) -> list[PositionedNode]:
        return [node for node in self.nodes if node.parent == -1]

    def children_of(self, index: int) -> list[PositionedNode]:
        return [node for node in self.nodes if node.parent == index]

    def hit_test(self, px: float, py: float) -> Optional[PositionedNode]:
        """Innermost rectangle containing the point, if any."""
        hit: Optional[PositionedNode] = None
        for node in self.nodes:
            if node.contains(px, py) and (hit is None or node.depth > hit.depth):
                hit = node
        return hit


def layout_treemap(
    nodes: Sequence[TreemapNode],
    width: float,
    height: float,
    config: Optional[TreemapConfig] = None,
    max_depth: Optional[int] = None,
) -> TreemapLayout:
    """Lay out *nodes* (the current zoom level) in a ``width x height`` viewport.

    Args:
        nodes: Children of the current zoom root
        width: Viewport width in px
        height: Viewport height in px
        config: Padding, header band and label thresholds
        max_depth: Deepest level to tile (1 = only *nodes*); None tiles all

    Returns:
        A layout with status ``empty`` for no input, ``unmeasured`` for a
        viewport that has no size yet, else ``ready``.
    """
    config = config or TreemapConfig()
    total = total_value(nodes)

    if not nodes or total <= 0:
        return TreemapLayout(status=EMPTY, width=width, height=height, total_value=0.0)
    if not (_finite_positive(width) and _finite_positive(height)):
        return TreemapLayout(status=UNMEASURED, width=width, height=height, total_value=total)

    half_gap = config.inner_padding / 2
    side = config.outer_padding - half_gap
    # The view root has no header band of its own
    content = Rect(side, -half_gap, width - side, height - side)

    builder = _LayoutBuilder(config, total, max_depth)
    builder.tile(nodes, content, depth=1, parent=-1)

    logger.debug("Treemap layout: %d rectangles in %.0fx%.0f", len(builder.out), width, height)
    return TreemapLayout(
        status=READY,
        width=width,
        height=height,
        total_value=total,
        nodes=tuple(builder.out),
    )


class _LayoutBuilder:
    def __init__(self, config: TreemapConfig, total: float, max_depth: Optional[int]) -> None:
        self.config = config
        self.total = total
        self.max_depth = max_depth
        self.out: list[PositionedNode] = []

    def tile(self, nodes: Sequence[TreemapNode], content: Rect, depth: int, parent: int) -> None:
        config = self.config
        half_gap = config.inner_padding / 2

        ordered = sorted(nodes, key=lambda node: -node.value)
        tiles = squarify([node.value for node in ordered], _collapse(content))

        for node, tile in zip(ordered, tiles):
            box = _collapse(Rect(tile.x0 + half_gap, tile.y0 + half_gap, tile.x1 - half_gap, tile.y1 - half_gap))
            shown = _round(box) if config.round_coordinates else box

            kind = _kind(node)
            index = len(self.out)
            positioned = PositionedNode(
                index=index,
                parent=parent,
                depth=depth,
                x=shown.x0,
                y=shown.y0,
                width=shown.width,
                height=shown.height,
                kind=kind,
                node=node,
                percentage=node.value / self.total * 100,
                labels=label_visibility(kind, shown.width, shown.height, config),
                header_height=config.header_height if kind == KIND_GROUP else 0.0,
            )
            self.out.append(positioned)

            if node.can_zoom and (self.max_depth is None or depth < self.max_depth):
                side = config.outer_padding - half_gap
                # A header taller than the box leaves an empty band at its bottom
                top = min(box.y0 + config.header_height - half_gap, box.y1 - side)
                inner = Rect(
                    box.x0 + side,
                    top,
                    box.x1 - side,
                    box.y1 - side,
                )
                self.tile(node.children, inner, depth + 1, index)


def label_visibility(kind: str, width: float, height: float, config: TreemapConfig) -> LabelVisibility:
    """Label sub-elements that fit a ``width x height`` rectangle.

    Nothing is shown below ``label_min_size``; alert leaves then gain the
    icon and finally the percentage as they grow.
    """
    min_w, min_h = config.label_min_size
    if not (width > min_w and height > min_h):
        return LabelVisibility()

    if kind == KIND_GROUP:
        count_w, count_h = config.count_min_size
        return LabelVisibility(
            header=True, name=True, percentage=True, count=width >= count_w and height >= count_h
        )
    if kind == KIND_OVERFLOW:
        return LabelVisibility(name=True, overflow_count=height >= config.overflow_count_min_height)

    icon_w, icon_h = config.icon_min_size
    pct_w, pct_h = config.percentage_min_size
    return LabelVisibility(
        name=True,
        icon=width >= icon_w and height >= icon_h,
        percentage=width >= pct_w and height >= pct_h,
    )


def _kind(node: TreemapNode) -> str:
    if node.can_zoom:
        return KIND_GROUP
    if node.is_overflow:
        return KIND_OVERFLOW
    return KIND_ALERT


def _collapse(rect: Rect) -> Rect:
    """Collapse inverted edges to their midpoint."""
    x0, y0, x1, y1 = rect
    if x1 < x0:
        x0 = x1 = (x0 + x1) / 2
    if y1 < y0:
        y0 = y1 = (y0 + y1) / 2
    return Rect(x0, y0, x1, y1)


def _round(rect: Rect) -> Rect:
    return Rect(*(float(round(v)) for v in rect))


def _finite_positive(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0

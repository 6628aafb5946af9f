"""Treemap (heatmap) layout engine: overflow bucketing, tiling, zoom."""

from .layout import (
    EMPTY,
    READY,
    UNMEASURED,
    LabelVisibility,
    PositionedNode,
    TreemapLayout,
    layout_treemap,
)
from .navigation import Breadcrumb, ClickResult, ZoomState, click, wheel
from .nodes import TreemapNode, build_treemap_nodes, max_visible_leaves, overflow_fraction
from .squarify import Rect, squarify

__all__ = [
    "EMPTY",
    "READY",
    "UNMEASURED",
    "Breadcrumb",
    "ClickResult",
    "LabelVisibility",
    "PositionedNode",
    "Rect",
    "TreemapLayout",
    "TreemapNode",
    "ZoomState",
    "build_treemap_nodes",
    "click",
    "layout_treemap",
    "max_visible_leaves",
    "overflow_fraction",
    "squarify",
    "wheel",
]

"""Zoom and breadcrumb navigation over treemap nodes.

``ZoomState`` is an immutable snapshot: every transition returns a new
state, so a layout computed from the old one can never observe a
half-applied zoom.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .layout import KIND_ALERT, KIND_GROUP, KIND_OVERFLOW, PositionedNode
from .nodes import TreemapNode, total_value

ROOT_INDEX = -1

# Click outcomes
ZOOM = "zoom"
SELECT = "select"
OVERFLOW = "overflow"
NONE = "none"


@dataclass(frozen=True)
class Breadcrumb:
    name: str
    node: TreemapNode


@dataclass(frozen=True)
class ZoomState:
    """True root plus the path of zoomed-into groups."""

    root: Tuple[TreemapNode, ...]
    breadcrumbs: Tuple[Breadcrumb, ...] = ()

    @classmethod
    def at_root(cls, nodes: Sequence[TreemapNode]) -> "ZoomState":
        return cls(root=tuple(nodes))

    @property
    def depth(self) -> int:
        return len(self.breadcrumbs)

    @property
    def current(self) -> Tuple[TreemapNode, ...]:
        """Nodes laid out at the current zoom level."""
        if not self.breadcrumbs:
            return self.root
        return self.breadcrumbs[-1].node.children

    @property
    def current_group(self) -> Optional[TreemapNode]:
        return self.breadcrumbs[-1].node if self.breadcrumbs else None

    def share_of_root(self) -> float:
        """Current level's value as a percentage of the true root."""
        root_total = total_value(self.root)
        if root_total <= 0:
            return 0.0
        return total_value(self.current) / root_total * 100

    def zoom_in(self, node: TreemapNode) -> "ZoomState":
        """Descend into *node*; leaves and empty groups leave the state as is."""
        if not node.can_zoom:
            return self
        return ZoomState(self.root, self.breadcrumbs + (Breadcrumb(node.name, node),))

    def go_to(self, index: int) -> "ZoomState":
        """Jump to breadcrumb *index*; ``-1`` restores the true root."""
        if index <= ROOT_INDEX:
            return ZoomState(self.root)
        if index >= len(self.breadcrumbs) - 1:
            return self
        return ZoomState(self.root, self.breadcrumbs[: index + 1])

    def zoom_out(self) -> "ZoomState":
        """Pop exactly one level."""
        return self.go_to(len(self.breadcrumbs) - 2)

    def with_root(self, nodes: Sequence[TreemapNode]) -> "ZoomState":
        """Re-root after the data changed, keeping the zoom path by group key.

        Levels whose group no longer exists are dropped from the path.
        """
        state = ZoomState.at_root(nodes)
        level: Sequence[TreemapNode] = state.root
        for crumb in self.breadcrumbs:
            match = next((node for node in level if node.key == crumb.node.key and node.can_zoom), None)
            if match is None:
                break
            state = state.zoom_in(match)
            level = match.children
        return state


@dataclass(frozen=True)
class ClickResult:
    """What a click on a rectangle asks the caller to do."""

    action: str
    state: ZoomState
    node: Optional[TreemapNode] = None


def click(state: ZoomState, target: PositionedNode) -> ClickResult:
    """Dispatch a click on *target*.

    Groups zoom in, alert leaves request selection, the overflow leaf
    requests its secondary listing and never zooms.
    """
    if target.kind == KIND_GROUP:
        zoomed = state.zoom_in(target.node)
        if zoomed is state:
            return ClickResult(NONE, state)
        return ClickResult(ZOOM, zoomed, target.node)
    if target.kind == KIND_OVERFLOW:
        return ClickResult(OVERFLOW, state, target.node)
    if target.kind == KIND_ALERT and target.node.payload is not None:
        return ClickResult(SELECT, state, target.node)
    return ClickResult(NONE, state)


def wheel(state: ZoomState, target: Optional[PositionedNode], delta_y: float, modifier: bool) -> ZoomState:
    """Modified-wheel zoom: scrolling up over a group zooms in, down pops one level.

    Unmodified wheel events belong to the page and change nothing.
    """
    if not modifier or delta_y == 0:
        return state
    if delta_y < 0:
        if target is not None and target.kind == KIND_GROUP:
            return state.zoom_in(target.node)
        return state
    if state.breadcrumbs:
        return state.zoom_out()
    return state

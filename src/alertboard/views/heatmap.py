"""Zoomable alert heatmap.

Pipeline: group -> treemap nodes -> zoom state -> layout. The layout is
recomputed only when the zoom state or the viewport size changes, and a
refreshed record set keeps the current zoom path where its groups still
exist.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Union

from ..context import DashboardContext
from ..grouping import GroupingCache
from ..models import Alert, GroupNode
from ..treemap import (
    Breadcrumb,
    ClickResult,
    PositionedNode,
    TreemapLayout,
    TreemapNode,
    ZoomState,
    build_treemap_nodes,
    click,
    layout_treemap,
    wheel,
)
from ..treemap.navigation import NONE, OVERFLOW, SELECT, ZOOM
from .state import Controllable

logger = logging.getLogger(__name__)

# Grouping used when the caller asks for none
DEFAULT_HEATMAP_GROUP_BY = ("tag",)

Target = Union[int, tuple[float, float], PositionedNode, None]


class HeatmapView:
    """Treemap of alerts with zoom and breadcrumb navigation.

    Args:
        context: Dashboard context (config, value getter, timers)
        alerts: Initial record set
        group_by: Initial grouping fields (uncontrolled); empty means ``("tag",)``
        group_by_getter: External source of grouping fields (controlled)
        on_group_by_change: Called with the new field list
        zoom_path_getter: External source of the zoom path as group keys
            (controlled); zooming then only reports through ``on_zoom_change``
        on_select: Called with the alert behind a clicked rectangle
        on_zoom_change: Called with the breadcrumb tuple after each zoom
        on_overflow: Called with the hidden alerts of a clicked overflow leaf
        width: Initial viewport width (0 = not measured yet)
        height: Initial viewport height
    """

    def __init__(
        self,
        context: DashboardContext,
        alerts: Sequence[Alert] = (),
        *,
        group_by: Sequence[str] = (),
        group_by_getter: Optional[Callable[[], Sequence[str]]] = None,
        on_group_by_change: Optional[Callable[[list[str]], None]] = None,
        zoom_path_getter: Optional[Callable[[], Sequence[str]]] = None,
        on_select: Optional[Callable[[Alert], None]] = None,
        on_zoom_change: Optional[Callable[[tuple[Breadcrumb, ...]], None]] = None,
        on_overflow: Optional[Callable[[tuple[Alert, ...]], None]] = None,
        width: float = 0.0,
        height: float = 0.0,
    ) -> None:
        self.context = context
        self._alerts: Sequence[Alert] = alerts
        self._group_by: Controllable[tuple[str, ...]] = Controllable(
            tuple(group_by),
            getter=(lambda: tuple(group_by_getter())) if group_by_getter is not None else None,
            on_change=(lambda fields: on_group_by_change(list(fields))) if on_group_by_change else None,
        )
        self._zoom_path_getter = zoom_path_getter
        self.on_select = on_select
        self.on_zoom_change = on_zoom_change
        self.on_overflow = on_overflow
        self._width = float(width)
        self._height = float(height)

        self._grouping = GroupingCache()
        self._nodes_for: Optional[list[GroupNode]] = None
        self._nodes_group_by: Optional[tuple[str, ...]] = None
        self._nodes: list[TreemapNode] = []
        self._zoom = ZoomState.at_root(())
        self._layout_for: Optional[tuple[ZoomState, float, float]] = None
        self._layout: Optional[TreemapLayout] = None

        self._resize = context.debouncer(self._apply_size)

    # ── Inputs ───────────────────────────────────────────────────

    def set_alerts(self, alerts: Sequence[Alert]) -> None:
        self._alerts = alerts

    @property
    def group_by(self) -> tuple[str, ...]:
        return self._group_by.get() or DEFAULT_HEATMAP_GROUP_BY

    def set_group_by(self, fields: Sequence[str]) -> None:
        """Change grouping; once applied, the zoom path is reset to the root."""
        fields = tuple(fields)
        if fields == self._group_by.get():
            return
        self._group_by.set(fields)
        if not self._group_by.controlled:
            self._sync()

    @property
    def size(self) -> tuple[float, float]:
        return self._width, self._height

    def resize(self, width: float, height: float) -> None:
        """Debounced container resize; bursts collapse into one re-layout."""
        self._resize(width, height)

    def flush_resize(self) -> None:
        self._resize.flush()

    def _apply_size(self, width: float, height: float) -> None:
        self._width, self._height = float(width), float(height)
        logger.debug("Heatmap resized to %.0fx%.0f", self._width, self._height)

    # ── Pipeline ─────────────────────────────────────────────────

    def nodes(self) -> list[TreemapNode]:
        self._sync()
        return self._nodes

    @property
    def zoom(self) -> ZoomState:
        self._sync()
        if self._zoom_path_getter is not None:
            wanted = tuple(self._zoom_path_getter())
            if wanted != _path(self._zoom):
                self._zoom = self._resolve_path(wanted)
        return self._zoom

    @property
    def breadcrumbs(self) -> tuple[Breadcrumb, ...]:
        return self.zoom.breadcrumbs

    @property
    def zoom_path(self) -> tuple[str, ...]:
        """Group keys along the current zoom path."""
        return _path(self.zoom)

    def _sync(self) -> None:
        group_by = self.group_by
        forest = self._grouping.get(
            self._alerts, group_by, self.context.value_getter, self.context.config.unknown_label
        )
        if forest is self._nodes_for:
            return
        self._nodes = build_treemap_nodes(forest, self.context.config.treemap)
        self._nodes_for = forest
        regrouped = self._nodes_group_by is not None and group_by != self._nodes_group_by
        self._nodes_group_by = group_by
        if regrouped:
            rerooted = ZoomState.at_root(self._nodes)
        else:
            # Data refresh: keep the path, dropping levels that vanished
            rerooted = self._zoom.with_root(self._nodes)
        shortened = rerooted.depth != self._zoom.depth
        self._zoom = rerooted
        if shortened:
            logger.info("Zoom path shortened to %d levels", rerooted.depth)
            if self.on_zoom_change is not None:
                self.on_zoom_change(rerooted.breadcrumbs)

    def layout(self) -> TreemapLayout:
        zoom = self.zoom
        key = (zoom, self._width, self._height)
        if self._layout is None or self._layout_for is None or not _same_layout_inputs(self._layout_for, key):
            self._layout = layout_treemap(zoom.current, self._width, self._height, self.context.config.treemap)
            self._layout_for = key
        return self._layout

    def share_of_root(self) -> float:
        return self.zoom.share_of_root()

    # ── Navigation ───────────────────────────────────────────────

    def _set_zoom(self, state: ZoomState) -> None:
        current = self.zoom
        if state is current:
            return
        unchanged = _path(state) == _path(current)
        if self._zoom_path_getter is None:
            self._zoom = state
        if unchanged:
            return
        logger.info("Heatmap zoom: %s", " / ".join(c.name for c in state.breadcrumbs) or "root")
        if self.on_zoom_change is not None:
            self.on_zoom_change(state.breadcrumbs)

    def _resolve(self, target: Target) -> Optional[PositionedNode]:
        if target is None or isinstance(target, PositionedNode):
            return target
        layout = self.layout()
        if isinstance(target, int):
            if 0 <= target < len(layout.nodes):
                return layout.nodes[target]
            return None
        x, y = target
        return layout.hit_test(x, y)

    def click(self, target: Target) -> ClickResult:
        """Click a rectangle (layout index, ``(x, y)`` point or node)."""
        node = self._resolve(target)
        if node is None:
            return ClickResult(NONE, self.zoom)
        result = click(self.zoom, node)
        if result.action == ZOOM:
            self._set_zoom(result.state)
        elif result.action == SELECT and result.node is not None and result.node.payload is not None:
            if self.on_select is not None:
                self.on_select(result.node.payload)
        elif result.action == OVERFLOW and result.node is not None:
            if self.on_overflow is not None:
                self.on_overflow(result.node.overflow_payload)
        return result

    def wheel(self, target: Target, delta_y: float, modifier: bool = True) -> ZoomState:
        """Modified wheel: up over a group zooms in, down zooms out one level."""
        state = wheel(self.zoom, self._resolve(target), delta_y, modifier)
        self._set_zoom(state)
        return state

    def go_to(self, index: int) -> None:
        """Breadcrumb click; ``-1`` is the root."""
        self._set_zoom(self.zoom.go_to(index))

    def zoom_out(self) -> None:
        self._set_zoom(self.zoom.zoom_out())

    def zoom_to_path(self, keys: Sequence[str]) -> ZoomState:
        """Zoom along a path of group keys, as far as it still resolves."""
        self._sync()
        state = self._resolve_path(keys)
        self._set_zoom(state)
        return state

    def _resolve_path(self, keys: Sequence[str]) -> ZoomState:
        state = ZoomState.at_root(self._nodes)
        level: Sequence[TreemapNode] = state.root
        for key in keys:
            match = next((node for node in level if node.key == key and node.can_zoom), None)
            if match is None:
                break
            state = state.zoom_in(match)
            level = match.children
        return state


def _path(state: ZoomState) -> tuple[str, ...]:
    return tuple(crumb.node.key for crumb in state.breadcrumbs)


def _same_layout_inputs(cached: tuple[ZoomState, float, float], current: tuple[ZoomState, float, float]) -> bool:
    return cached[0] is current[0] and cached[1:] == current[1:]

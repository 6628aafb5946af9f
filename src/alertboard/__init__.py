"""
Alertboard - grouped, windowed and zoomable views over operations alerts

Partitions a flat alert set into an N-level group tree, flattens it for a
virtualized table with stacked sticky headers, and lays the same tree out
as an area-proportional treemap with overflow bucketing and zoom.
"""

__version__ = "0.1.0"

from .config import DashboardConfig, load_config
from .context import DashboardContext
from .feed import AlertFeed, AutoRefresher, Debouncer
from .grouping import flatten, group_records, resolve_sticky_headers, toggle
from .models import Alert, Group, GroupRow, Leaf, LeafRow
from .treemap import ZoomState, build_treemap_nodes, layout_treemap
from .views import AlertTableView, HeatmapView
from .window import RowVirtualizer

__all__ = [
    "Alert",
    "AlertFeed",
    "AlertTableView",
    "AutoRefresher",
    "DashboardConfig",
    "DashboardContext",
    "Debouncer",
    "Group",
    "GroupRow",
    "HeatmapView",
    "Leaf",
    "LeafRow",
    "RowVirtualizer",
    "ZoomState",
    "build_treemap_nodes",
    "flatten",
    "group_records",
    "layout_treemap",
    "load_config",
    "resolve_sticky_headers",
    "toggle",
]

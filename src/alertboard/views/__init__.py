"""Table and heatmap views over the shared grouping pipeline."""

from .filtering import DEFAULT_SORT, SORT_FIELDS, filter_alerts, next_sort, parse_timestamp, sort_alerts
from .heatmap import DEFAULT_HEATMAP_GROUP_BY, HeatmapView
from .state import Controllable
from .table import AlertTableView, TableWindow, WindowRow

__all__ = [
    "DEFAULT_HEATMAP_GROUP_BY",
    "DEFAULT_SORT",
    "SORT_FIELDS",
    "AlertTableView",
    "Controllable",
    "HeatmapView",
    "TableWindow",
    "WindowRow",
    "filter_alerts",
    "next_sort",
    "parse_timestamp",
    "sort_alerts",
]

"""Grouping engine and tree flattener."""

from .engine import GroupingCache, count_leaves, group_records, iter_group_keys
from .flatten import expand_all, flatten, resolve_sticky_headers, toggle

__all__ = [
    "GroupingCache",
    "count_leaves",
    "expand_all",
    "flatten",
    "group_records",
    "iter_group_keys",
    "resolve_sticky_headers",
    "toggle",
]

"""Build weighted treemap nodes from the alert group forest.

Every leaf weighs 1, so a group's area is proportional to its alert count.
Groups with many direct alert leaves are capped: the first ``C`` leaves
stay and the rest collapse into one synthetic overflow leaf, keeping the
rectangle count bounded at every zoom level.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..config import OVERFLOW_BREAKPOINTS, OVERFLOW_FLOOR_FRACTION, TreemapConfig
from ..models import UNKNOWN, Alert, Group, GroupNode, Leaf

GROUP = "group"
LEAF = "leaf"

LEAF_WEIGHT = 1.0


@dataclass(frozen=True)
class TreemapNode:
    """Weighted tree node for area-proportional layout.

    ``value`` of a group always equals the sum of its children's values.
    A leaf carries either one alert (``payload``) or, for the overflow
    leaf, the alerts it stands in for (``overflow_payload``).
    """

    name: str
    value: float
    node_type: str
    children: Tuple["TreemapNode", ...] = ()
    payload: Optional[Alert] = None
    overflow_payload: Tuple[Alert, ...] = ()
    count: int = 1
    key: str = ""

    @property
    def is_group(self) -> bool:
        return self.node_type == GROUP

    @property
    def is_overflow(self) -> bool:
        return self.node_type == LEAF and self.payload is None and bool(self.overflow_payload)

    @property
    def can_zoom(self) -> bool:
        return self.is_group and bool(self.children)


def overflow_fraction(
    total_nodes: int,
    breakpoints: Sequence[Tuple[int, float]] = OVERFLOW_BREAKPOINTS,
    floor_fraction: float = OVERFLOW_FLOOR_FRACTION,
) -> float:
    """Fraction of leaves kept for a group showing *total_nodes* children."""
    for limit, fraction in breakpoints:
        if total_nodes <= limit:
            return fraction
    return floor_fraction


def max_visible_leaves(
    leaf_count: int,
    group_count: int,
    breakpoints: Sequence[Tuple[int, float]] = OVERFLOW_BREAKPOINTS,
    floor_fraction: float = OVERFLOW_FLOOR_FRACTION,
) -> int:
    """Cap ``C`` on direct alert leaves for a group.

    The total node count is the group's direct leaves plus direct
    subgroups, i.e. what one zoom level into this group would show.
    """
    fraction = overflow_fraction(leaf_count + group_count, breakpoints, floor_fraction)
    return math.floor(leaf_count * fraction)


def display_name(value: str) -> str:
    """Capitalized group label; the unknown sentinel is kept as is."""
    if value.strip().lower() == UNKNOWN.lower():
        return UNKNOWN
    return value[:1].upper() + value[1:]


def build_treemap_nodes(
    forest: Sequence[GroupNode],
    config: Optional[TreemapConfig] = None,
) -> list[TreemapNode]:
    """Convert a group forest into treemap nodes with overflow bucketing.

    Parameters
    ----------
    forest:
        Output of :func:`alertboard.grouping.group_records`.
    config:
        Overflow breakpoints and weight; defaults to :class:`TreemapConfig`.

    Returns
    -------
    list[TreemapNode]
        One node per forest entry, in forest order. Empty groups are dropped.
    """
    config = config or TreemapConfig()
    nodes = (_convert(node, config) for node in forest)
    return [node for node in nodes if node is not None]


def _convert(node: GroupNode, config: TreemapConfig) -> Optional[TreemapNode]:
    if isinstance(node, Leaf):
        return TreemapNode(
            name=node.record.name,
            value=LEAF_WEIGHT,
            node_type=LEAF,
            payload=node.record,
            key=f"alert:{node.record.id}",
        )

    converted = (_convert(child, config) for child in node.children)
    children = [child for child in converted if child is not None]
    if not children:
        return None

    children = _bucket_overflow(children, node, config)

    return TreemapNode(
        name=display_name(node.value),
        value=sum(child.value for child in children),
        node_type=GROUP,
        children=tuple(children),
        count=node.count,
        key=node.key,
    )


def _bucket_overflow(children: list[TreemapNode], group: Group, config: TreemapConfig) -> list[TreemapNode]:
    leaves = [child for child in children if not child.is_group]
    groups = [child for child in children if child.is_group]

    cap = max_visible_leaves(
        len(leaves), len(groups), config.overflow_breakpoints, config.overflow_floor_fraction
    )
    if cap <= 0 or len(leaves) <= cap:
        return children

    visible, hidden = leaves[:cap], leaves[cap:]
    overflow = TreemapNode(
        name=f"+{len(hidden)} more",
        value=config.overflow_weight,
        node_type=LEAF,
        overflow_payload=tuple(leaf.payload for leaf in hidden if leaf.payload is not None),
        count=len(hidden),
        key=f"{group.key}#overflow",
    )
    return [*groups, *visible, overflow]


def total_value(nodes: Sequence[TreemapNode]) -> float:
    return sum(node.value for node in nodes)

"""Linearize a group forest under an expanded-key set.

Also resolves the stack of sticky group headers for a scroll position:
for every nesting level, the nearest group row at or above the top
visible row stays pinned while its content scrolls underneath.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, Sequence

from ..models import FlatGroupItem, Group, GroupNode, GroupRow, LeafRow


def flatten(forest: Sequence[GroupNode], expanded_keys: AbstractSet[str]) -> list[FlatGroupItem]:
    """Depth-first pre-order rows for *forest*.

    Collapsed groups hide their descendants; descendants' own keys stay in
    *expanded_keys* untouched, so reopening the parent restores them.
    """
    rows: list[FlatGroupItem] = []
    stack: list[tuple[GroupNode, int]] = [(node, 0) for node in reversed(forest)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, Group):
            is_expanded = node.key in expanded_keys
            rows.append(
                GroupRow(
                    key=node.key,
                    field=node.field,
                    value=node.value,
                    count=node.count,
                    level=node.level,
                    is_expanded=is_expanded,
                )
            )
            if is_expanded:
                stack.extend((child, depth + 1) for child in reversed(node.children))
        else:
            rows.append(LeafRow(record=node.record, level=depth))
    return rows


def toggle(expanded_keys: AbstractSet[str], key: str) -> frozenset[str]:
    """New key set with *key* flipped; other keys are left alone."""
    if key in expanded_keys:
        return frozenset(expanded_keys - {key})
    return frozenset(expanded_keys | {key})


def expand_all(keys: Iterable[str]) -> frozenset[str]:
    return frozenset(keys)


def resolve_sticky_headers(rows: Sequence[FlatGroupItem], anchor_index: int) -> list[GroupRow]:
    """Group rows to pin above the viewport, outermost first.

    Walks back from *anchor_index* keeping the nearest group row per level
    and stops once a level-0 row is captured. Out-of-range anchors are
    clamped; an empty row list has no headers.

    Examples:
        Level-0 group at 0, level-1 group at 1, leaves at 2-5: anchor 4
        yields the rows at 0 and 1, in that order.
    """
    if not rows:
        return []
    anchor_index = min(max(anchor_index, 0), len(rows) - 1)

    headers: dict[int, GroupRow] = {}
    for index in range(anchor_index, -1, -1):
        row = rows[index]
        if isinstance(row, GroupRow):
            headers.setdefault(row.level, row)
            if row.level == 0:
                break

    return [headers[level] for level in sorted(headers)]

"""Partition a flat alert list into an N-level group tree.

Each level buckets by one field id; buckets are ordered ascending by
ordinal string comparison, which is deterministic and locale-independent.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..fields import ValueGetter, get_alert_value
from ..models import UNKNOWN, Alert, Group, GroupNode, Leaf, join_key

logger = logging.getLogger(__name__)


def group_records(
    records: Sequence[Alert],
    fields: Sequence[str],
    get_value: ValueGetter = get_alert_value,
    unknown: str = UNKNOWN,
) -> list[GroupNode]:
    """Build the group forest for *records* over the ordered *fields*.

    With no fields every record becomes a top-level ``Leaf`` in input order.
    Records keep their input order inside each bucket. Blank values from
    the getter are bucketed under *unknown*.

    Examples:
        >>> alerts = [Alert("1", "a", "firing"), Alert("2", "b", "firing"), Alert("3", "c", "resolved")]
        >>> [(g.value, g.count) for g in group_records(alerts, ["status"])]
        [('firing', 2), ('resolved', 1)]
    """
    forest = _group_level(records, tuple(fields), get_value, unknown, parent_key=None, level=0)
    logger.debug("Grouped %d records by %s into %d top-level nodes", len(records), list(fields), len(forest))
    return forest


def _group_level(
    records: Sequence[Alert],
    fields: tuple[str, ...],
    get_value: ValueGetter,
    unknown: str,
    parent_key: Optional[str],
    level: int,
) -> list[GroupNode]:
    if not fields:
        return [Leaf(record) for record in records]

    field_id, rest = fields[0], fields[1:]

    buckets: dict[str, list[Alert]] = {}
    for record in records:
        value = get_value(record, field_id)
        if not value or not value.strip():
            value = unknown
        buckets.setdefault(value, []).append(record)

    groups: list[GroupNode] = []
    for value in sorted(buckets):
        key = join_key(parent_key, value)
        children = _group_level(buckets[value], rest, get_value, unknown, key, level + 1)
        groups.append(
            Group(
                key=key,
                field=field_id,
                value=value,
                count=sum(child.count for child in children),
                children=tuple(children),
                level=level,
            )
        )
    return groups


def iter_group_keys(forest: Sequence[GroupNode]) -> list[str]:
    """Every group key in the forest, pre-order."""
    keys: list[str] = []
    stack = list(reversed(forest))
    while stack:
        node = stack.pop()
        if isinstance(node, Group):
            keys.append(node.key)
            stack.extend(reversed(node.children))
    return keys


def count_leaves(forest: Sequence[GroupNode]) -> int:
    return sum(node.count for node in forest)


class GroupingCache:
    """Remembers the last forest and rebuilds only when its inputs change.

    Inputs are compared by identity for the record list and the getter,
    and by value for the field list, so unrelated re-renders cost nothing.
    """

    def __init__(self) -> None:
        self._records: Optional[Sequence[Alert]] = None
        self._fields: Optional[tuple[str, ...]] = None
        self._getter: Optional[ValueGetter] = None
        self._unknown: Optional[str] = None
        self._forest: list[GroupNode] = []
        self.misses = 0

    def get(
        self,
        records: Sequence[Alert],
        fields: Sequence[str],
        get_value: ValueGetter = get_alert_value,
        unknown: str = UNKNOWN,
    ) -> list[GroupNode]:
        fields_key = tuple(fields)
        if (
            records is self._records
            and get_value is self._getter
            and fields_key == self._fields
            and unknown == self._unknown
        ):
            return self._forest

        forest = group_records(records, fields_key, get_value, unknown)
        # Swap only after the new forest is complete
        self._records, self._fields, self._getter, self._forest = records, fields_key, get_value, forest
        self._unknown = unknown
        self.misses += 1
        return forest

    def clear(self) -> None:
        self._records = None
        self._fields = None
        self._getter = None
        self._unknown = None
        self._forest = []

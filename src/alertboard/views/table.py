"""Grouped, windowed alert table.

Pipeline: filter -> sort -> group -> flatten -> virtualize. Each stage is
memoized on the identity of its input, so changing the scroll position
never regroups and toggling a group never re-sorts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Callable, Optional, Sequence

from ..context import DashboardContext
from ..grouping import GroupingCache, flatten, iter_group_keys, resolve_sticky_headers, toggle
from ..models import Alert, FlatGroupItem, GroupNode, GroupRow, LeafRow
from ..window import RowVirtualizer, VirtualItem
from .filtering import DEFAULT_SORT, SortDirection, filter_alerts, next_sort, sort_alerts
from .state import Controllable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowRow:
    item: VirtualItem
    row: FlatGroupItem


@dataclass(frozen=True)
class TableWindow:
    """Everything a renderer needs for one frame of the table."""

    rows: tuple[WindowRow, ...]
    sticky_headers: tuple[GroupRow, ...]
    total_size: float
    row_count: int
    anchor_index: Optional[int]
    scroll_offset: float


class AlertTableView:
    """Alert table with multi-level grouping and windowed rows.

    Group-by fields, expanded keys, the search term and the sort can each
    be controlled (pass the matching ``*_getter``; changes are only reported
    through the callbacks) or left to the view. Uncontrolled groups start
    collapsed or expanded according to ``config.default_expanded``.

    Args:
        context: Dashboard context (config, value getter)
        alerts: Initial record set
        group_by: Initial grouping fields (uncontrolled)
        group_by_getter: External source of grouping fields (controlled)
        on_group_by_change: Called with the new field list
        expanded_getter: External source of expanded keys (controlled)
        on_toggle_group: Called with the toggled group key
        search_getter: External source of the search term (controlled)
        on_search_change: Called with the new search term
        sort_getter: External source of ``(field, direction)`` (controlled)
        on_sort_change: Called with the new ``(field, direction)``
        on_select: Called with the alert a user picked
    """

    def __init__(
        self,
        context: DashboardContext,
        alerts: Sequence[Alert] = (),
        *,
        group_by: Sequence[str] = (),
        group_by_getter: Optional[Callable[[], Sequence[str]]] = None,
        on_group_by_change: Optional[Callable[[list[str]], None]] = None,
        expanded_getter: Optional[Callable[[], AbstractSet[str]]] = None,
        on_toggle_group: Optional[Callable[[str], None]] = None,
        search_getter: Optional[Callable[[], str]] = None,
        on_search_change: Optional[Callable[[str], None]] = None,
        sort_getter: Optional[Callable[[], tuple[str, SortDirection]]] = None,
        on_sort_change: Optional[Callable[[tuple[str, SortDirection]], None]] = None,
        on_select: Optional[Callable[[Alert], None]] = None,
    ) -> None:
        self.context = context
        config = context.config
        self._alerts: Sequence[Alert] = alerts
        self._search: Controllable[str] = Controllable("", getter=search_getter, on_change=on_search_change)
        self._sort: Controllable[tuple[str, SortDirection]] = Controllable(
            DEFAULT_SORT,
            getter=(lambda: tuple(sort_getter())) if sort_getter is not None else None,
            on_change=on_sort_change,
        )

        self._group_by: Controllable[tuple[str, ...]] = Controllable(
            tuple(group_by),
            getter=(lambda: tuple(group_by_getter())) if group_by_getter is not None else None,
            on_change=(lambda fields: on_group_by_change(list(fields))) if on_group_by_change else None,
        )
        # Uncontrolled: keys flipped away from the default expansion
        self._toggled: frozenset[str] = frozenset()
        self._expanded_getter = expanded_getter
        self._expand_by_default = config.default_expanded == "expanded"
        self.on_toggle_group = on_toggle_group
        self.on_select = on_select

        self._grouping = GroupingCache()
        self._filtered_for: Optional[tuple[Sequence[Alert], str]] = None
        self._filtered: Sequence[Alert] = ()
        self._sorted_for: Optional[tuple[Sequence[Alert], tuple[str, SortDirection]]] = None
        self._sorted: list[Alert] = []
        self._rows_for: Optional[tuple[list[GroupNode], frozenset[str]]] = None
        self._rows: list[FlatGroupItem] = []

        self.virtualizer = RowVirtualizer(
            estimate_size=config.table.leaf_row_height,
            overscan=config.table.overscan,
        )
        self._virtualized_rows: Optional[list[FlatGroupItem]] = None

    # ── Inputs ───────────────────────────────────────────────────

    @property
    def alerts(self) -> Sequence[Alert]:
        return self._alerts

    def set_alerts(self, alerts: Sequence[Alert]) -> None:
        self._alerts = alerts

    @property
    def search(self) -> str:
        return self._search.get()

    def set_search(self, term: str) -> None:
        self._search.set(term)

    @property
    def sort(self) -> tuple[str, SortDirection]:
        return self._sort.get()

    def set_sort(self, field: str, direction: Optional[SortDirection] = None) -> None:
        """Sort by *field*; without *direction*, behave like a header click."""
        if direction is None:
            current_field, current_direction = self.sort
            self._sort.set(next_sort(current_field, current_direction, field))
        else:
            self._sort.set((field, direction))

    @property
    def group_by(self) -> tuple[str, ...]:
        return self._group_by.get()

    def set_group_by(self, fields: Sequence[str]) -> None:
        self._group_by.set(tuple(fields))

    @property
    def expanded_keys(self) -> frozenset[str]:
        if self._expanded_getter is not None:
            return frozenset(self._expanded_getter())
        if self._expand_by_default:
            return frozenset(iter_group_keys(self.forest())) - self._toggled
        return self._toggled

    def toggle_group(self, key: str) -> None:
        """Flip one group open or closed; descendants keep their own state."""
        if self._expanded_getter is None:
            self._toggled = toggle(self._toggled, key)
        logger.debug("Toggled group %r", key)
        if self.on_toggle_group is not None:
            self.on_toggle_group(key)

    def expand_all(self) -> None:
        if self._expanded_getter is not None:
            return
        keys = frozenset(iter_group_keys(self.forest()))
        self._toggled = frozenset() if self._expand_by_default else keys

    def collapse_all(self) -> None:
        if self._expanded_getter is not None:
            return
        keys = frozenset(iter_group_keys(self.forest()))
        self._toggled = keys if self._expand_by_default else frozenset()

    # ── Pipeline ─────────────────────────────────────────────────

    def visible_alerts(self) -> list[Alert]:
        """Filtered and sorted records, before grouping."""
        filter_key = (self._alerts, self.search)
        if self._filtered_for is None or not _same(self._filtered_for, filter_key):
            self._filtered = filter_alerts(self._alerts, self.search)
            self._filtered_for = filter_key

        sort_key = (self._filtered, self.sort)
        if self._sorted_for is None or not _same(self._sorted_for, sort_key):
            self._sorted = sort_alerts(self._filtered, *self.sort)
            self._sorted_for = sort_key
        return self._sorted

    def forest(self) -> list[GroupNode]:
        return self._grouping.get(
            self.visible_alerts(), self.group_by, self.context.value_getter, self.context.config.unknown_label
        )

    def rows(self) -> list[FlatGroupItem]:
        forest = self.forest()
        expanded = self.expanded_keys
        if self._rows_for is None or self._rows_for[0] is not forest or self._rows_for[1] != expanded:
            self._rows = flatten(forest, expanded)
            self._rows_for = (forest, expanded)
        return self._rows

    def row_at(self, index: int) -> Optional[FlatGroupItem]:
        rows = self.rows()
        if 0 <= index < len(rows):
            return rows[index]
        return None

    # ── Windowing ────────────────────────────────────────────────

    def _sync_virtualizer(self) -> list[FlatGroupItem]:
        rows = self.rows()
        if rows is not self._virtualized_rows:
            table = self.context.config.table
            estimates = [
                table.group_row_height if isinstance(row, GroupRow) else table.leaf_row_height for row in rows
            ]
            self.virtualizer.set_rows([row.row_key for row in rows], estimates)
            self._virtualized_rows = rows
        return rows

    def measure(self, index: int, height: float) -> bool:
        """Report a rendered row height; True when the layout moved."""
        self._sync_virtualizer()
        return self.virtualizer.measure(index, height)

    def scroll_to_row(self, index: int, align: str = "start") -> float:
        self._sync_virtualizer()
        offset = self.virtualizer.offset_for_index(index, align)
        self.virtualizer.scroll_to(offset)
        return offset

    def window(self, scroll_offset: Optional[float] = None, viewport_height: Optional[float] = None) -> TableWindow:
        """Rows to materialize for the viewport, plus the sticky header stack."""
        rows = self._sync_virtualizer()
        if viewport_height is not None:
            self.virtualizer.resize(viewport_height)
        if scroll_offset is not None:
            self.virtualizer.scroll_to(scroll_offset)

        items = self.virtualizer.virtual_items()
        anchor = self.virtualizer.anchor_index()
        headers: list[GroupRow] = []
        if self.group_by and anchor is not None and items:
            headers = resolve_sticky_headers(rows, anchor)

        return TableWindow(
            rows=tuple(WindowRow(item, rows[item.index]) for item in items),
            sticky_headers=tuple(headers),
            total_size=self.virtualizer.total_size,
            row_count=len(rows),
            anchor_index=anchor,
            scroll_offset=self.virtualizer.scroll_offset,
        )

    # ── Selection ────────────────────────────────────────────────

    def find_alert(self, alert_id: str) -> Optional[Alert]:
        return next((alert for alert in self._alerts if alert.id == alert_id), None)

    def select(self, alert_id: str) -> Optional[Alert]:
        """Select an alert by id and notify ``on_select``."""
        alert = self.find_alert(alert_id)
        if alert is not None and self.on_select is not None:
            self.on_select(alert)
        return alert

    def activate_row(self, index: int) -> Optional[FlatGroupItem]:
        """Click on a row: group rows toggle, alert rows select."""
        row = self.row_at(index)
        if isinstance(row, GroupRow):
            self.toggle_group(row.key)
        elif isinstance(row, LeafRow) and self.on_select is not None:
            self.on_select(row.record)
        return row


def _same(cached: tuple, current: tuple) -> bool:
    """Identity for the record list, equality for the scalar parameters."""
    return cached[0] is current[0] and cached[1] == current[1]

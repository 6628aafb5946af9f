"""Tests for grouping.flatten: flatten, toggle, sticky headers."""

from alertboard.grouping import expand_all, flatten, group_records, iter_group_keys, resolve_sticky_headers, toggle
from alertboard.models import Alert, GroupRow, LeafRow


def _group_row(key, level, expanded=True):
    return GroupRow(key=key, field="f", value=key, count=1, level=level, is_expanded=expanded)


def _leaf_row(alert_id, level):
    return LeafRow(record=Alert(id=str(alert_id), name=f"a{alert_id}"), level=level)


class TestFlatten:
    def test_collapsed_yields_one_row_per_top_level_group(self, env_alerts):
        forest = group_records(env_alerts, ["status", "tag:env"])
        rows = flatten(forest, frozenset())
        assert [row.key for row in rows] == ["firing", "resolved"]
        assert all(isinstance(row, GroupRow) and not row.is_expanded for row in rows)

    def test_no_fields_yields_one_row_per_record(self, env_alerts):
        rows = flatten(group_records(env_alerts, []), frozenset())
        assert len(rows) == len(env_alerts)
        assert all(isinstance(row, LeafRow) and row.level == 0 for row in rows)

    def test_fully_expanded_three_records(self, three_statuses):
        forest = group_records(three_statuses, ["status", "tag:env"])
        rows = flatten(forest, expand_all(iter_group_keys(forest)))
        # 2 level-0 groups + 3 subgroups + 3 leaves
        assert len(rows) == 8
        assert sum(isinstance(row, LeafRow) for row in rows) == 3

    def test_fully_expanded_four_records(self, env_alerts):
        forest = group_records(env_alerts, ["status", "tag:env"])
        rows = flatten(forest, expand_all(iter_group_keys(forest)))
        shape = [(type(row).__name__, row.level) for row in rows]
        assert shape == [
            ("GroupRow", 0),
            ("GroupRow", 1),
            ("LeafRow", 2),
            ("LeafRow", 2),
            ("GroupRow", 1),
            ("LeafRow", 2),
            ("GroupRow", 0),
            ("GroupRow", 1),
            ("LeafRow", 2),
        ]

    def test_collapsed_parent_hides_expanded_child(self, env_alerts):
        forest = group_records(env_alerts, ["status", "tag:env"])
        rows = flatten(forest, frozenset({"firing/prod"}))
        assert [row.key for row in rows] == ["firing", "resolved"]

    def test_child_expansion_survives_parent_collapse(self, env_alerts):
        forest = group_records(env_alerts, ["status", "tag:env"])
        expanded = frozenset({"firing", "firing/prod"})
        collapsed = toggle(expanded, "firing")
        assert "firing/prod" in collapsed
        reopened = toggle(collapsed, "firing")
        assert flatten(forest, reopened) == flatten(forest, expanded)

    def test_expanded_flag_on_rows(self, env_alerts):
        forest = group_records(env_alerts, ["status"])
        rows = flatten(forest, frozenset({"resolved"}))
        assert [(row.key, row.is_expanded) for row in rows if isinstance(row, GroupRow)] == [
            ("firing", False),
            ("resolved", True),
        ]

    def test_row_keys(self, env_alerts):
        rows = flatten(group_records(env_alerts, ["status"]), frozenset({"resolved"}))
        assert [row.row_key for row in rows] == ["group:firing", "group:resolved", "alert:4"]

    def test_empty_forest(self):
        assert flatten([], frozenset({"x"})) == []


class TestToggle:
    def test_double_toggle_restores_rows(self, env_alerts):
        forest = group_records(env_alerts, ["status", "tag:env"])
        expanded = frozenset({"firing"})
        before = flatten(forest, expanded)
        after = flatten(forest, toggle(toggle(expanded, "firing/prod"), "firing/prod"))
        assert after == before

    def test_toggle_is_pure(self):
        keys = frozenset({"a"})
        assert toggle(keys, "b") == {"a", "b"}
        assert toggle(keys, "a") == frozenset()
        assert keys == {"a"}

    def test_accepts_plain_set(self):
        assert toggle({"a"}, "b") == frozenset({"a", "b"})


class TestStickyHeaders:
    def test_anchor_inside_nested_group(self):
        rows = [_group_row("g0", 0), _group_row("g1", 1)] + [_leaf_row(i, 2) for i in range(4)]
        headers = resolve_sticky_headers(rows, 4)
        assert [h.key for h in headers] == ["g0", "g1"]

    def test_nearest_row_per_level(self):
        rows = [
            _group_row("a", 0),
            _group_row("a/x", 1),
            _leaf_row(1, 2),
            _group_row("a/y", 1),
            _leaf_row(2, 2),
            _leaf_row(3, 2),
        ]
        assert [h.key for h in resolve_sticky_headers(rows, 5)] == ["a", "a/y"]

    def test_stops_at_level_zero(self):
        rows = [
            _group_row("a", 0),
            _group_row("a/x", 1),
            _group_row("b", 0),
            _leaf_row(1, 1),
        ]
        assert [h.key for h in resolve_sticky_headers(rows, 3)] == ["b"]

    def test_anchor_on_group_row_includes_it(self):
        rows = [_group_row("a", 0), _leaf_row(1, 1), _group_row("b", 0)]
        assert [h.key for h in resolve_sticky_headers(rows, 2)] == ["b"]

    def test_no_groups(self):
        rows = [_leaf_row(i, 0) for i in range(3)]
        assert resolve_sticky_headers(rows, 2) == []

    def test_empty_rows(self):
        assert resolve_sticky_headers([], 0) == []

    def test_anchor_clamped(self):
        rows = [_group_row("a", 0), _leaf_row(1, 1)]
        assert [h.key for h in resolve_sticky_headers(rows, 99)] == ["a"]
        assert [h.key for h in resolve_sticky_headers(rows, -5)] == ["a"]

    def test_ordered_by_level(self):
        rows = [_group_row("a", 0), _group_row("a/b", 1), _group_row("a/b/c", 2), _leaf_row(1, 3)]
        headers = resolve_sticky_headers(rows, 3)
        assert [h.level for h in headers] == [0, 1, 2]

"""Tests for treemap.layout."""

import math

import pytest

from alertboard.config import TreemapConfig
from alertboard.grouping import group_records
from alertboard.models import Alert
from alertboard.sources import generate_mock_alerts
from alertboard.treemap import (
    EMPTY,
    READY,
    UNMEASURED,
    LabelVisibility,
    TreemapNode,
    ZoomState,
    build_treemap_nodes,
    layout_treemap,
)
from alertboard.treemap.layout import KIND_ALERT, KIND_GROUP, KIND_OVERFLOW, label_visibility


def _leaf(alert_id, value=1.0):
    return TreemapNode(
        name=f"alert-{alert_id}",
        value=value,
        node_type="leaf",
        payload=Alert(id=str(alert_id), name=f"alert-{alert_id}"),
        key=f"alert:{alert_id}",
    )


def _group(key, children):
    return TreemapNode(
        name=key.title(),
        value=sum(child.value for child in children),
        node_type="group",
        children=tuple(children),
        count=len(children),
        key=key,
    )


def _geometry(layout):
    return [(n.kind, n.node.key, n.x, n.y, n.width, n.height, n.parent, n.depth) for n in layout.nodes]


class TestStatus:
    def test_empty_input(self):
        layout = layout_treemap([], 100, 100)
        assert layout.status == EMPTY
        assert layout.nodes == ()
        assert not layout.is_ready

    def test_zero_total_is_empty(self):
        layout = layout_treemap([_leaf(1, value=0)], 100, 100)
        assert layout.status == EMPTY

    @pytest.mark.parametrize("width,height", [(0, 100), (100, 0), (-5, 100), (math.nan, 100), (100, math.inf)])
    def test_unmeasured_viewport(self, width, height):
        layout = layout_treemap([_leaf(1)], width, height)
        assert layout.status == UNMEASURED
        assert layout.nodes == ()
        assert layout.total_value == 1

    def test_ready(self):
        assert layout_treemap([_leaf(1)], 100, 100).status == READY


class TestGeometry:
    def test_single_leaf_fills_padded_viewport(self):
        layout = layout_treemap([_leaf(1)], 100, 100)
        (node,) = layout.nodes
        assert (node.x, node.y, node.width, node.height) == (2, 0, 96, 98)
        assert node.kind == KIND_ALERT
        assert node.parent == -1
        assert node.depth == 1
        assert node.percentage == 100

    def test_group_children_sit_below_header(self):
        layout = layout_treemap([_group("g", [_leaf(1)])], 100, 100)
        group, child = layout.nodes
        assert group.kind == KIND_GROUP
        assert group.header_height == 28
        assert (child.x, child.y, child.width, child.height) == (4, 28, 92, 68)
        assert child.parent == group.index == 0
        assert child.depth == 2
        assert layout.children_of(0) == [child]
        assert layout.top_level() == [group]

    def test_parents_precede_children_and_contain_them(self):
        alerts = generate_mock_alerts(count=400, seed=5)
        nodes = build_treemap_nodes(group_records(alerts, ["status", "tag:env"]))
        layout = layout_treemap(nodes, 1200, 800)
        assert layout.is_ready
        for position, node in enumerate(layout.nodes):
            assert node.index == position
            if node.parent >= 0:
                parent = layout.nodes[node.parent]
                assert parent.index < node.index
                assert parent.depth == node.depth - 1
                assert node.x >= parent.x and node.y >= parent.y
                assert node.x + node.width <= parent.x + parent.width
                assert node.y + node.height <= parent.y + parent.height

    def test_percentages_relative_to_level(self):
        nodes = [_group("a", [_leaf(1), _leaf(2), _leaf(3)]), _leaf(4)]
        layout = layout_treemap(nodes, 400, 300)
        top = layout.top_level()
        assert sum(node.percentage for node in top) == pytest.approx(100)
        assert {node.node.key: node.percentage for node in top} == {"a": 75, "alert:4": 25}
        assert [node.percentage for node in layout.children_of(top[0].index)] == [25, 25, 25]

    def test_larger_values_laid_out_first(self):
        layout = layout_treemap([_leaf(1, 1), _leaf(2, 5)], 200, 100)
        assert [node.node.key for node in layout.nodes] == ["alert:2", "alert:1"]

    def test_rounded_coordinates(self):
        nodes = [_leaf(i) for i in range(7)]
        layout = layout_treemap(nodes, 333, 211)
        for node in layout.nodes:
            assert node.x == int(node.x) and node.width == int(node.width)

    def test_unrounded_coordinates(self):
        config = TreemapConfig(round_coordinates=False)
        layout = layout_treemap([_leaf(i) for i in range(3)], 100, 100, config)
        assert any(node.height != int(node.height) for node in layout.nodes)

    def test_max_depth_limits_nesting(self):
        nodes = [_group("a", [_leaf(1), _leaf(2)]), _group("b", [_leaf(3)])]
        layout = layout_treemap(nodes, 400, 300, max_depth=1)
        assert [node.depth for node in layout.nodes] == [1, 1]

    def test_tiny_group_collapses_instead_of_inverting(self):
        nodes = [_group("a", [_leaf(1)])]
        layout = layout_treemap(nodes, 20, 20)
        for node in layout.nodes:
            assert node.width >= 0 and node.height >= 0

    def test_zoom_round_trip_reproduces_layout(self):
        alerts = generate_mock_alerts(count=250, seed=9)
        nodes = build_treemap_nodes(group_records(alerts, ["status", "tag:env"]))
        state = ZoomState.at_root(nodes)
        before = layout_treemap(state.current, 800, 600)
        zoomed = state.zoom_in(state.current[0])
        assert layout_treemap(zoomed.current, 800, 600).nodes != before.nodes
        after = layout_treemap(zoomed.go_to(-1).current, 800, 600)
        assert _geometry(after) == _geometry(before)


class TestHitTest:
    def test_innermost_wins(self):
        layout = layout_treemap([_group("g", [_leaf(1)])], 100, 100)
        assert layout.hit_test(50, 50).kind == KIND_ALERT
        assert layout.hit_test(50, 10).kind == KIND_GROUP

    def test_outside_is_none(self):
        layout = layout_treemap([_leaf(1)], 100, 100)
        assert layout.hit_test(0.5, 50) is None
        assert layout.hit_test(500, 500) is None

    def test_in_header(self):
        layout = layout_treemap([_group("g", [_leaf(1)])], 100, 100)
        group = layout.nodes[0]
        assert group.in_header(10)
        assert not group.in_header(40)


class TestLabelVisibility:
    def test_too_small_shows_nothing(self):
        config = TreemapConfig()
        assert label_visibility(KIND_ALERT, 30, 100, config) == LabelVisibility()
        assert label_visibility(KIND_GROUP, 100, 25, config) == LabelVisibility()

    def test_alert_labels_grow_with_size(self):
        config = TreemapConfig()
        assert label_visibility(KIND_ALERT, 35, 28, config) == LabelVisibility(name=True)
        assert label_visibility(KIND_ALERT, 45, 32, config) == LabelVisibility(name=True, icon=True)
        assert label_visibility(KIND_ALERT, 60, 35, config) == LabelVisibility(name=True, icon=True, percentage=True)

    def test_group_labels(self):
        config = TreemapConfig()
        small = label_visibility(KIND_GROUP, 40, 30, config)
        assert small.header and small.name and small.percentage
        assert not small.count
        assert label_visibility(KIND_GROUP, 45, 35, config).count

    def test_overflow_count_needs_height(self):
        config = TreemapConfig()
        assert not label_visibility(KIND_OVERFLOW, 80, 34, config).overflow_count
        shown = label_visibility(KIND_OVERFLOW, 80, 35, config)
        assert shown.name and shown.overflow_count
        assert not shown.icon

    def test_layout_precomputes_labels(self):
        layout = layout_treemap([_leaf(1)], 100, 100)
        assert layout.nodes[0].labels == LabelVisibility(name=True, icon=True, percentage=True)

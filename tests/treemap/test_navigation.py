"""Tests for treemap.navigation: zoom state, clicks, wheel."""

import pytest

from alertboard.grouping import group_records
from alertboard.models import Alert
from alertboard.treemap import (
    ClickResult,
    LabelVisibility,
    PositionedNode,
    TreemapNode,
    ZoomState,
    build_treemap_nodes,
    click,
    layout_treemap,
    wheel,
)
from alertboard.treemap.navigation import NONE, OVERFLOW, SELECT, ZOOM


def _alert(alert_id, status="firing", env=None):
    tags = {"env": env} if env else {}
    return Alert(id=str(alert_id), name=f"alert-{alert_id}", status=status, tags=tags)


def _keys(state):
    return [crumb.node.key for crumb in state.breadcrumbs]


@pytest.fixture
def nodes(env_alerts):
    return build_treemap_nodes(group_records(env_alerts, ["status", "tag:env"]))


class TestZoomState:
    def test_at_root(self, nodes):
        state = ZoomState.at_root(nodes)
        assert state.depth == 0
        assert state.current == tuple(nodes)
        assert state.current_group is None
        assert state.share_of_root() == 100

    def test_zoom_in_pushes_breadcrumb(self, nodes):
        firing = nodes[0]
        state = ZoomState.at_root(nodes).zoom_in(firing)
        assert state.depth == 1
        assert state.breadcrumbs[0].name == "Firing"
        assert state.current == firing.children
        assert state.current_group is firing
        assert state.share_of_root() == pytest.approx(75)

    def test_zoom_into_leaf_is_noop(self, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[0]).zoom_in(nodes[0].children[0])
        leaf = state.current[0]
        assert state.zoom_in(leaf) is state

    def test_go_to(self, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[0]).zoom_in(nodes[0].children[0])
        assert _keys(state) == ["firing", "firing/prod"]
        assert _keys(state.go_to(0)) == ["firing"]
        assert state.go_to(1) is state
        assert state.go_to(5) is state
        assert state.go_to(-1).depth == 0
        assert state.go_to(-7).depth == 0

    def test_zoom_out_pops_one_level(self, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[0]).zoom_in(nodes[0].children[0])
        assert _keys(state.zoom_out()) == ["firing"]
        assert state.zoom_out().zoom_out().depth == 0
        assert ZoomState.at_root(nodes).zoom_out().depth == 0

    def test_transitions_do_not_mutate(self, nodes):
        state = ZoomState.at_root(nodes)
        state.zoom_in(nodes[0])
        assert state.depth == 0

    def test_with_root_keeps_path_by_key(self, env_alerts, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[0]).zoom_in(nodes[0].children[0])
        refreshed = build_treemap_nodes(
            group_records(env_alerts + [_alert(9, "firing", env="prod")], ["status", "tag:env"])
        )
        rerooted = state.with_root(refreshed)
        assert _keys(rerooted) == ["firing", "firing/prod"]
        assert rerooted.current_group.count == 3
        assert rerooted.root == tuple(refreshed)

    def test_with_root_drops_missing_levels(self, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[1])
        remaining = build_treemap_nodes(group_records([_alert(1, "firing", env="prod")], ["status", "tag:env"]))
        assert state.with_root(remaining).depth == 0

    def test_with_root_on_empty(self, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[0])
        empty = state.with_root([])
        assert empty.depth == 0
        assert empty.share_of_root() == 0.0


class TestClick:
    def _layout(self, state):
        return layout_treemap(state.current, 800, 600)

    def test_click_group_zooms(self, nodes):
        state = ZoomState.at_root(nodes)
        target = self._layout(state).top_level()[0]
        result = click(state, target)
        assert isinstance(result, ClickResult)
        assert result.action == ZOOM
        assert result.node is target.node
        assert _keys(result.state) == [target.node.key]

    def test_click_leaf_selects(self, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[0]).zoom_in(nodes[0].children[0])
        target = self._layout(state).nodes[0]
        result = click(state, target)
        assert result.action == SELECT
        assert result.state is state
        assert result.node.payload.id in {"1", "2"}

    def test_click_overflow_never_zooms(self):
        alerts = [_alert(i, "firing") for i in range(40)]
        (firing,) = build_treemap_nodes(group_records(alerts, ["status"]))
        zoomed = ZoomState.at_root([firing]).zoom_in(firing)
        layout = layout_treemap(zoomed.current, 800, 600)
        (target,) = [node for node in layout.nodes if node.kind == "overflow"]
        result = click(zoomed, target)
        assert result.action == OVERFLOW
        assert result.state is zoomed
        assert len(result.node.overflow_payload) == 8

    def test_click_on_childless_group_is_noop(self):
        group = TreemapNode(name="g", value=1, node_type="group")
        target = PositionedNode(
            index=0,
            parent=-1,
            depth=1,
            x=0,
            y=0,
            width=10,
            height=10,
            kind="group",
            node=group,
            percentage=100,
            labels=LabelVisibility(),
        )
        state = ZoomState.at_root([group])
        assert click(state, target).action == NONE


class TestWheel:
    def test_unmodified_wheel_does_nothing(self, nodes):
        state = ZoomState.at_root(nodes)
        target = layout_treemap(state.current, 800, 600).top_level()[0]
        assert wheel(state, target, -100, modifier=False) is state

    def test_wheel_up_on_group_zooms_in(self, nodes):
        state = ZoomState.at_root(nodes)
        target = layout_treemap(state.current, 800, 600).top_level()[0]
        assert wheel(state, target, -100, modifier=True).depth == 1

    def test_wheel_up_without_group_stays(self, nodes):
        state = ZoomState.at_root(nodes)
        assert wheel(state, None, -100, modifier=True) is state

    def test_wheel_down_pops(self, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[0])
        assert wheel(state, None, 100, modifier=True).depth == 0
        root = ZoomState.at_root(nodes)
        assert wheel(root, None, 100, modifier=True) is root

    def test_zero_delta(self, nodes):
        state = ZoomState.at_root(nodes).zoom_in(nodes[0])
        assert wheel(state, None, 0, modifier=True) is state

"""Tests for the Starlette dashboard app."""

import pytest
from starlette.testclient import TestClient

from alertboard.exceptions import FeedError, SourceFormatError
from alertboard.feed import AlertFeed
from alertboard.server.app import create_app
from alertboard.server.state import ServerState


class _Fetcher:
    """Returns ``alerts`` or raises ``error`` when set."""

    def __init__(self, alerts):
        self.alerts = alerts
        self.error = None

    def __call__(self):
        if self.error is not None:
            raise self.error
        return self.alerts


@pytest.fixture
def fetcher(env_alerts):
    return _Fetcher(env_alerts)


@pytest.fixture
def state(context, fetcher):
    feed = AlertFeed(fetcher, source_name="test")
    feed.refresh()
    state = ServerState(context, feed, group_by=["status"], heatmap_group_by=["status", "tag:env"])
    yield state
    state.close()


@pytest.fixture
def client(state):
    return TestClient(create_app(state))


class TestStateRoute:
    def test_state(self, client):
        data = client.get("/api/state").json()
        assert data["alertCount"] == 4
        assert data["groupBy"] == ["status"]
        assert data["heatmapGroupBy"] == ["status", "tag:env"]
        assert data["sequence"] == 1


class TestTableRoutes:
    def test_collapsed_groups(self, client):
        data = client.get("/api/table?scroll=0&height=200").json()
        assert data["rowCount"] == 2
        assert [row["key"] for row in data["rows"]] == ["firing", "resolved"]
        assert [h["key"] for h in data["stickyHeaders"]] == ["firing"]

    def test_bad_number(self, client):
        response = client.get("/api/table?height=tall")
        assert response.status_code == 400
        assert "height" in response.json()["error"]

    def test_toggle(self, client):
        response = client.post("/api/toggle", json={"key": "firing"})
        assert response.json() == {"key": "firing", "isExpanded": True}
        assert client.get("/api/table").json()["rowCount"] == 5
        assert client.get("/api/state").json()["expandedKeys"] == ["firing"]

    def test_toggle_rejects_bad_bodies(self, client):
        assert client.post("/api/toggle", content="nope").status_code == 400
        assert client.post("/api/toggle", json=["firing"]).status_code == 400
        assert client.post("/api/toggle", json={"key": 3}).status_code == 400

    def test_group_by(self, client):
        response = client.post("/api/group-by", json={"fields": ["tag:env"]})
        assert response.json() == {"groupBy": ["tag:env"], "view": "table"}
        rows = client.get("/api/table?height=400").json()["rows"]
        assert [row["value"] for row in rows] == ["prod", "staging"]

    def test_group_by_heatmap(self, client):
        client.post("/api/group-by", json={"fields": ["type"], "view": "heatmap"})
        assert client.get("/api/state").json()["heatmapGroupBy"] == ["type"]

    def test_group_by_rejects_bad_input(self, client):
        assert client.post("/api/group-by", json={"fields": "status"}).status_code == 400
        assert client.post("/api/group-by", json={"fields": [1]}).status_code == 400
        assert client.post("/api/group-by", json={"fields": [], "view": "chart"}).status_code == 400

    def test_sort(self, client):
        assert client.post("/api/sort", json={"field": "alertName"}).json() == {
            "field": "alertName",
            "direction": "asc",
        }
        assert client.post("/api/sort", json={"field": "alertName"}).json()["direction"] == "desc"
        assert client.post("/api/sort", json={"field": "status", "direction": "up"}).status_code == 400

    def test_search(self, client):
        assert client.post("/api/search", json={"term": "ALERT-3"}).json() == {"term": "ALERT-3", "matches": 1}
        assert client.post("/api/search", json={"term": 5}).status_code == 400


class TestHeatmapRoutes:
    def test_unmeasured_until_sized(self, client):
        assert client.get("/api/heatmap").json()["status"] == "unmeasured"

    def test_layout(self, client):
        data = client.get("/api/heatmap?width=800&height=600").json()
        assert data["status"] == "ready"
        assert data["shareOfRoot"] == 100.0
        assert data["rects"][0]["key"] == "firing"
        assert data["rects"][0]["percentage"] == 75.0
        # Size sticks for later requests
        assert client.get("/api/heatmap").json()["width"] == 800

    def test_zoom_path_and_out(self, client):
        data = client.post("/api/zoom", json={"action": "path", "keys": ["firing"]}).json()
        assert data["zoomPath"] == ["firing"]
        assert data["breadcrumbs"] == [{"index": 0, "name": "Firing", "key": "firing"}]
        assert client.get("/api/state").json()["zoomPath"] == ["firing"]
        assert client.post("/api/zoom", json={"action": "out"}).json()["zoomPath"] == []

    def test_click_group_zooms(self, client):
        client.get("/api/heatmap?width=800&height=600")
        data = client.post("/api/zoom", json={"action": "click", "index": 0}).json()
        assert data["result"] == "zoom"
        assert data["zoomPath"] == ["firing"]
        assert client.get("/api/heatmap").json()["shareOfRoot"] == 75.0

    def test_click_alert_selects(self, client):
        client.get("/api/heatmap?width=800&height=600")
        client.post("/api/zoom", json={"action": "path", "keys": ["firing", "firing/staging"]})
        data = client.post("/api/zoom", json={"action": "click", "index": 0}).json()
        assert data["result"] == "select"
        assert data["alert"]["id"] == "3"

    def test_goto_root(self, client):
        client.post("/api/zoom", json={"action": "path", "keys": ["firing", "firing/prod"]})
        assert client.post("/api/zoom", json={"action": "goto", "index": -1}).json()["zoomPath"] == []

    def test_zoom_rejects_bad_input(self, client):
        assert client.post("/api/zoom", json={"action": "spin"}).status_code == 400
        assert client.post("/api/zoom", json={"action": "goto", "index": "0"}).status_code == 400
        assert client.post("/api/zoom", json={"action": "click", "index": 1.5}).status_code == 400
        assert client.post("/api/zoom", json={"action": "path", "keys": "firing"}).status_code == 400


class TestAlertRoute:
    def test_found(self, client):
        data = client.get("/api/alerts/2").json()
        assert data["alertName"] == "alert-2"
        assert data["tags"] == {"env": "prod"}

    def test_missing(self, client):
        assert client.get("/api/alerts/nope").status_code == 404


class TestRefreshRoute:
    def test_applied(self, client, fetcher, env_alerts):
        fetcher.alerts = env_alerts[:1]
        data = client.post("/api/refresh").json()
        assert data == {"status": "applied", "sequence": 2, "alertCount": 1}
        assert client.get("/api/table").json()["rowCount"] == 1

    def test_retryable_failure(self, client, fetcher):
        fetcher.error = FeedError("test", "timeout")
        response = client.post("/api/refresh")
        assert response.status_code == 503
        assert response.json()["retryable"] is True
        state = client.get("/api/state").json()
        assert state["alertCount"] == 4
        assert "timeout" in state["error"]["message"]

    def test_format_error(self, client, fetcher):
        fetcher.error = SourceFormatError("test", "not a list")
        response = client.post("/api/refresh")
        assert response.status_code == 502
        assert response.json()["retryable"] is False


class TestWebSocket:
    def test_initial_state_then_updates(self, client):
        with client.websocket_connect("/ws") as ws:
            first = ws.receive_json()
            assert first["type"] == "complete"
            assert first["state"]["alertCount"] == 4

            client.post("/api/toggle", json={"key": "resolved"})
            update = ws.receive_json()
            assert update["type"] == "complete"
            assert update["state"]["expandedKeys"] == ["resolved"]

    def test_listener_removed_on_disconnect(self, client, state):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            assert state.listener_count == 1
        assert state.listener_count == 0

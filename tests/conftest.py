"""Shared test fixtures for Alertboard tests."""

import pytest

from alertboard.config import DashboardConfig
from alertboard.context import DashboardContext
from alertboard.models import Alert


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def _alert(alert_id, status="firing", env=None, name=None, **kwargs):
    """Alert with an optional ``env`` tag; extra kwargs go to the dataclass."""
    tags = dict(kwargs.pop("tags", {}))
    if env is not None:
        tags["env"] = env
    return Alert(id=str(alert_id), name=name or f"alert-{alert_id}", status=status, tags=tags, **kwargs)


@pytest.fixture
def three_statuses():
    """firing, firing, resolved."""
    return [
        _alert(1, "firing", env="prod"),
        _alert(2, "firing", env="staging"),
        _alert(3, "resolved", env="prod"),
    ]


@pytest.fixture
def env_alerts():
    """firing: prod x2, staging x1; resolved: prod x1."""
    return [
        _alert(1, "firing", env="prod"),
        _alert(2, "firing", env="prod"),
        _alert(3, "firing", env="staging"),
        _alert(4, "resolved", env="prod"),
    ]


@pytest.fixture
def config():
    return DashboardConfig()


@pytest.fixture
def context():
    ctx = DashboardContext(DashboardConfig())
    yield ctx
    ctx.close()


@pytest.fixture
def api_payload():
    """Alerts API envelope with two camelCase alerts."""
    return {
        "success": True,
        "data": {
            "alerts": [
                {
                    "id": "a1",
                    "alertName": "HighCPU api",
                    "status": "firing",
                    "isDismissed": False,
                    "tags": {"env": "prod", "team": "platform"},
                    "startsAt": "2024-05-01T10:00:00Z",
                    "summary": "CPU above 90%",
                    "type": "Grafana",
                    "tag": "backend",
                    "alertUrl": "https://grafana.example.com/a1",
                    "fingerprint": "abc",
                },
                {
                    "id": "a2",
                    "alertName": "DiskLow db",
                    "status": "resolved",
                    "isDismissed": True,
                    "tags": {"env": "staging"},
                    "startsAt": "2024-05-01T09:00:00Z",
                    "type": "GCP",
                    "tag": "database",
                },
            ]
        },
    }

"""Record sources: JSON files, the alerts REST API, seeded mock data."""

from .files import FileAlertSource, load_alerts
from .http import HttpAlertSource
from .mock import MockDistribution, generate_mock_alerts
from .payload import parse_alert_payload

__all__ = [
    "FileAlertSource",
    "HttpAlertSource",
    "MockDistribution",
    "generate_mock_alerts",
    "load_alerts",
    "parse_alert_payload",
]
